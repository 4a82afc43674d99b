from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from sqlalchemy import select

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.ems.modules.employees.models import Employee


MAX_SALARY = Decimal("9999999999.99")


@dataclass(frozen=True)
class EmployeeFilters:
    department_id: int | None = None
    profession_id: int | None = None
    search: str = ""


@dataclass(frozen=True)
class EmployeeData:
    name: str
    salary: Decimal
    department_id: int
    profession_id: int


def parse_int(value: str | None) -> int | None:
    """Parse an id from a query string or form field; blank or garbage -> None."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_salary(value: str | None) -> Decimal | None:
    value = (value or "").strip().replace(",", ".")
    if not value:
        return None
    try:
        salary = Decimal(value)
    except InvalidOperation:
        return None
    if not salary.is_finite():
        return None
    if salary.copy_abs() > MAX_SALARY:
        # out of range for cents precision; validation rejects it
        return salary
    return salary.quantize(Decimal("0.01"))


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def filters_from_args(args) -> EmployeeFilters:
    return EmployeeFilters(
        department_id=parse_int(args.get("department_id")),
        profession_id=parse_int(args.get("profession_id")),
        search=(args.get("search") or "").strip(),
    )


def filter_employees(s: "Session", filters: EmployeeFilters) -> list["Employee"]:
    """
    Employees matching every filter that is set.
    `search` is a case-insensitive substring match on the name.
    """
    from app.ems.modules.employees.models import Employee

    q = select(Employee)
    if filters.department_id is not None:
        q = q.where(Employee.department_id == filters.department_id)
    if filters.profession_id is not None:
        q = q.where(Employee.profession_id == filters.profession_id)
    if filters.search:
        q = q.where(Employee.name.ilike(f"%{_escape_like(filters.search)}%", escape="\\"))
    return list(s.scalars(q.order_by(Employee.name.asc(), Employee.id.asc())))


def employees_with_details(s: "Session") -> list[tuple["Employee", str | None, str | None]]:
    """(employee, department name, profession name) for every employee."""
    from app.ems.modules.departments.models import Department
    from app.ems.modules.employees.models import Employee
    from app.ems.modules.professions.models import Profession

    q = (
        select(Employee, Department.name, Profession.name)
        .outerjoin(Department, Employee.department_id == Department.id)
        .outerjoin(Profession, Employee.profession_id == Profession.id)
        .order_by(Employee.id.asc())
    )
    return [(e, dep, prof) for e, dep, prof in s.execute(q)]


def validate_employee_payload(s: "Session", payload: dict) -> tuple[EmployeeData | None, list[str]]:
    """
    Validate employee creation/update payload.
    Returns (data, errors); data is None whenever errors is non-empty.
    """
    from app.ems.modules.departments.models import Department, DepartmentProfession
    from app.ems.modules.professions.models import Profession

    errors: list[str] = []
    name = (payload.get("name") or "").strip()
    if not name:
        errors.append("Employee name is required")

    salary = parse_salary(payload.get("salary"))
    if salary is None:
        errors.append("Salary must be a number")
    elif salary < 0:
        errors.append("Salary cannot be negative")
    elif salary > MAX_SALARY:
        errors.append("Salary is too large")

    department_id = parse_int(payload.get("department_id"))
    profession_id = parse_int(payload.get("profession_id"))
    if department_id is None or s.get(Department, department_id) is None:
        errors.append("Department not found")
    if profession_id is None or s.get(Profession, profession_id) is None:
        errors.append("Profession not found")
    elif department_id is not None:
        link = s.get(DepartmentProfession, (department_id, profession_id))
        if link is None:
            errors.append("Profession is not available in the selected department")

    if errors:
        return None, errors
    return EmployeeData(name=name, salary=salary, department_id=department_id, profession_id=profession_id), []


def create_employee(s: "Session", data: EmployeeData) -> "Employee":
    from app.ems.modules.employees.models import Employee

    employee = Employee(
        name=data.name,
        salary=data.salary,
        department_id=data.department_id,
        profession_id=data.profession_id,
    )
    s.add(employee)
    s.flush()
    return employee


def update_employee(s: "Session", employee: "Employee", data: EmployeeData) -> "Employee":
    employee.name = data.name
    employee.salary = data.salary
    employee.department_id = data.department_id
    employee.profession_id = data.profession_id
    s.flush()
    return employee


def delete_employee(s: "Session", employee: "Employee") -> None:
    s.delete(employee)
    s.flush()
