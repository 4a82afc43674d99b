from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.ems.modules.departments.models import Department


class DepartmentInUseError(ValueError):
    pass


def validate_department_payload(payload: dict) -> list[str]:
    """Validate department creation/update payload. Returns list of errors."""
    errors = []
    name = (payload.get("name") or "").strip()
    if not name:
        errors.append("Department name is required")
    elif len(name) > 255:
        errors.append("Department name must be at most 255 characters")
    return errors


def list_departments(s: "Session") -> list["Department"]:
    from app.ems.modules.departments.models import Department

    return list(s.scalars(select(Department).order_by(Department.name.asc(), Department.id.asc())))


def create_department(s: "Session", payload: dict) -> "Department":
    from app.ems.modules.departments.models import Department

    department = Department(name=(payload.get("name") or "").strip())
    s.add(department)
    s.flush()
    return department


def update_department(s: "Session", department: "Department", payload: dict) -> "Department":
    department.name = (payload.get("name") or "").strip()
    s.flush()
    return department


def delete_department(s: "Session", department: "Department") -> None:
    """Delete one department. Its profession associations go with it."""
    from app.ems.modules.employees.models import Employee

    in_use = s.scalar(select(func.count(Employee.id)).where(Employee.department_id == department.id)) or 0
    if in_use:
        raise DepartmentInUseError(f"Department still has {in_use} employee(s); reassign them first")
    s.delete(department)
    s.flush()


def set_department_professions(s: "Session", department: "Department", profession_ids: list[int]) -> list[str]:
    """
    Replace the set of professions selectable for a department.
    Returns the names of professions that could not be unlinked because employees use them.
    """
    from app.ems.modules.employees.models import Employee
    from app.ems.modules.professions.models import Profession

    wanted = set(profession_ids)
    professions = list(s.scalars(select(Profession).where(Profession.id.in_(sorted(wanted))))) if wanted else []

    # professions currently held by employees of this department must stay linked
    used_ids = set(
        s.scalars(
            select(Employee.profession_id).where(Employee.department_id == department.id).distinct()
        )
    )
    kept: list[str] = []
    for p in department.professions:
        if p.id in used_ids and p.id not in wanted:
            professions.append(p)
            kept.append(p.name)

    department.professions = professions
    s.flush()
    return kept
