from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.ems.modules.professions.models import Profession


class ProfessionInUseError(ValueError):
    pass


def validate_profession_payload(payload: dict) -> list[str]:
    """Validate profession creation/update payload. Returns list of errors."""
    errors = []
    name = (payload.get("name") or "").strip()
    if not name:
        errors.append("Profession name is required")
    elif len(name) > 255:
        errors.append("Profession name must be at most 255 characters")
    return errors


def list_professions(s: "Session") -> list["Profession"]:
    from app.ems.modules.professions.models import Profession

    return list(s.scalars(select(Profession).order_by(Profession.name.asc(), Profession.id.asc())))


def professions_for_department(s: "Session", department_id: int) -> list["Profession"]:
    """Professions selectable for employees of the given department."""
    from app.ems.modules.departments.models import DepartmentProfession
    from app.ems.modules.professions.models import Profession

    linked = select(DepartmentProfession.profession_id).where(DepartmentProfession.department_id == department_id)
    q = select(Profession).where(Profession.id.in_(linked)).order_by(Profession.name.asc(), Profession.id.asc())
    return list(s.scalars(q))


def create_profession(s: "Session", payload: dict) -> "Profession":
    from app.ems.modules.professions.models import Profession

    profession = Profession(name=(payload.get("name") or "").strip())
    s.add(profession)
    s.flush()
    return profession


def update_profession(s: "Session", profession: "Profession", payload: dict) -> "Profession":
    profession.name = (payload.get("name") or "").strip()
    s.flush()
    return profession


def delete_profession(s: "Session", profession: "Profession") -> None:
    from app.ems.modules.employees.models import Employee

    in_use = s.scalar(select(func.count(Employee.id)).where(Employee.profession_id == profession.id)) or 0
    if in_use:
        raise ProfessionInUseError(f"Profession is held by {in_use} employee(s); reassign them first")
    s.delete(profession)
    s.flush()
