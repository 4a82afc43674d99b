from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.ems.db import db_session
from app.ems.modules.departments.models import Department
from app.ems.modules.departments.service import list_departments
from app.ems.modules.employees.models import Employee
from app.ems.modules.employees.service import (
    create_employee,
    delete_employee,
    filter_employees,
    filters_from_args,
    parse_int,
    update_employee,
    validate_employee_payload,
)
from app.ems.modules.professions.service import list_professions, professions_for_department
from app.ems.rbac import admin_required
from app.ems.utils import db_error_redirect, flash_errors

bp = Blueprint("employees", __name__)


def _payload() -> dict:
    return {
        "name": request.form.get("name"),
        "salary": request.form.get("salary"),
        "department_id": request.form.get("department_id"),
        "profession_id": request.form.get("profession_id"),
    }


def _selected_department(s) -> Department | None:
    department_id = parse_int(request.args.get("department_id"))
    if department_id is None:
        return None
    return s.get(Department, department_id)


# ---------- Public list ----------
@bp.get("/employees")
def employees_list():
    s = db_session()
    filters = filters_from_args(request.args)
    try:
        departments = list_departments(s)
        professions = list_professions(s)
        employees = filter_employees(s, filters)
    except SQLAlchemyError:
        s.rollback()
        current_app.logger.exception("Error fetching employees")
        abort(500)
    return render_template(
        "employees/list.html",
        employees=employees,
        departments=departments,
        professions=professions,
        filters=filters,
        title="Employees",
    )


# ---------- New (step 1: department) ----------
@bp.get("/admin/employees/new")
@admin_required
def employees_new_get():
    s = db_session()
    try:
        departments = list_departments(s)
    except SQLAlchemyError:
        return db_error_redirect(s, "fetching departments", "admin.index")
    return render_template("employees/choose_department.html", departments=departments, employee=None, title="Create employee")


# ---------- New (step 2: profession + details) ----------
@bp.get("/admin/employees/new/details")
@admin_required
def employees_new_details():
    s = db_session()
    department = _selected_department(s)
    if department is None:
        flash("Please choose a department", "danger")
        return redirect(url_for("employees.employees_new_get"))
    try:
        professions = professions_for_department(s, department.id)
    except SQLAlchemyError:
        return db_error_redirect(s, "fetching professions", "employees.employees_new_get")
    return render_template(
        "employees/details.html",
        employee=None,
        department=department,
        professions=professions,
        title="Create Employee",
    )


@bp.post("/admin/employees/new")
@admin_required
def employees_new_post():
    s = db_session()
    payload = _payload()

    data, errors = validate_employee_payload(s, payload)
    if errors:
        flash_errors(errors)
        return redirect(url_for("employees.employees_new_get"))

    try:
        employee = create_employee(s, data)
        s.commit()
    except SQLAlchemyError:
        return db_error_redirect(s, "adding employee", "employees.employees_new_get")

    current_app.logger.info("Employee created (id=%s)", employee.id)
    flash("Employee added successfully", "success")
    return redirect(url_for("admin.index"))


# ---------- Edit (step 1: department) ----------
@bp.get("/admin/employees/<int:employee_id>/edit")
@admin_required
def employee_edit_get(employee_id: int):
    s = db_session()
    employee = s.get(Employee, employee_id)
    if not employee:
        abort(404)
    try:
        departments = list_departments(s)
    except SQLAlchemyError:
        return db_error_redirect(s, "fetching departments", "admin.index")
    return render_template(
        "employees/choose_department.html",
        departments=departments,
        employee=employee,
        title="Edit employee",
    )


# ---------- Edit (step 2: profession + details) ----------
@bp.get("/admin/employees/<int:employee_id>/edit/details")
@admin_required
def employee_edit_details(employee_id: int):
    s = db_session()
    employee = s.get(Employee, employee_id)
    if not employee:
        abort(404)
    department = _selected_department(s)
    if department is None:
        flash("Please choose a department", "danger")
        return redirect(url_for("employees.employee_edit_get", employee_id=employee_id))
    try:
        professions = professions_for_department(s, department.id)
    except SQLAlchemyError:
        return db_error_redirect(s, "fetching professions", "employees.employee_edit_get", employee_id=employee_id)
    return render_template(
        "employees/details.html",
        employee=employee,
        department=department,
        professions=professions,
        title="Edit Employee",
    )


@bp.post("/admin/employees/<int:employee_id>/edit")
@admin_required
def employee_edit_post(employee_id: int):
    s = db_session()
    employee = s.get(Employee, employee_id)
    if not employee:
        abort(404)

    data, errors = validate_employee_payload(s, _payload())
    if errors:
        flash_errors(errors)
        return redirect(url_for("employees.employee_edit_get", employee_id=employee_id))

    try:
        update_employee(s, employee, data)
        s.commit()
    except SQLAlchemyError:
        return db_error_redirect(s, "updating employee", "employees.employee_edit_get", employee_id=employee_id)

    flash("Employee updated successfully", "success")
    return redirect(url_for("admin.index"))


# ---------- Delete ----------
@bp.post("/admin/employees/<int:employee_id>/delete")
@admin_required
def employee_delete(employee_id: int):
    s = db_session()
    employee = s.get(Employee, employee_id)
    if not employee:
        flash("Employee not found", "danger")
        return redirect(url_for("admin.index"))

    try:
        delete_employee(s, employee)
        s.commit()
    except SQLAlchemyError:
        return db_error_redirect(s, "deleting employee", "admin.index")

    flash("Employee deleted successfully", "success")
    return redirect(url_for("admin.index"))
