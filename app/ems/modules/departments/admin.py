from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.ems.db import db_session
from app.ems.modules.departments.models import Department
from app.ems.modules.departments.service import (
    DepartmentInUseError,
    create_department,
    delete_department,
    list_departments,
    set_department_professions,
    update_department,
    validate_department_payload,
)
from app.ems.modules.employees.service import parse_int
from app.ems.modules.professions.service import list_professions
from app.ems.rbac import admin_required
from app.ems.utils import db_error_redirect, flash_errors

bp = Blueprint("departments", __name__)


def _get_or_redirect(s, department_id: int) -> Department | None:
    department = s.get(Department, department_id)
    if department is None:
        flash("Department not found", "danger")
    return department


# ---------- List ----------
@bp.get("/departments")
def departments_list():
    s = db_session()
    try:
        departments = list_departments(s)
    except SQLAlchemyError:
        s.rollback()
        current_app.logger.exception("Error fetching departments")
        abort(500)
    return render_template("departments/list.html", departments=departments, title="Departments")


# ---------- New ----------
@bp.get("/admin/departments/new")
@admin_required
def departments_new_get():
    return render_template("departments/form.html", department=None, title="Create Department")


@bp.post("/admin/departments/new")
@admin_required
def departments_new_post():
    s = db_session()
    payload = {"name": request.form.get("name")}

    errors = validate_department_payload(payload)
    if errors:
        flash_errors(errors)
        return redirect(url_for("departments.departments_new_get"))

    try:
        department = create_department(s, payload)
        s.commit()
    except SQLAlchemyError:
        return db_error_redirect(s, "adding department", "departments.departments_new_get")

    current_app.logger.info("Department created (id=%s)", department.id)
    flash("Department added successfully", "success")
    return redirect(url_for("departments.departments_list"))


# ---------- Edit ----------
@bp.get("/admin/departments/<int:department_id>/edit")
@admin_required
def department_edit_get(department_id: int):
    s = db_session()
    department = _get_or_redirect(s, department_id)
    if department is None:
        return redirect(url_for("departments.departments_list"))
    return render_template("departments/form.html", department=department, title="Edit Department")


@bp.post("/admin/departments/<int:department_id>/edit")
@admin_required
def department_edit_post(department_id: int):
    s = db_session()
    department = _get_or_redirect(s, department_id)
    if department is None:
        return redirect(url_for("departments.departments_list"))

    payload = {"name": request.form.get("name")}
    errors = validate_department_payload(payload)
    if errors:
        flash_errors(errors)
        return redirect(url_for("departments.department_edit_get", department_id=department_id))

    try:
        update_department(s, department, payload)
        s.commit()
    except SQLAlchemyError:
        return db_error_redirect(s, "updating department", "departments.department_edit_get", department_id=department_id)

    flash("Department updated successfully", "success")
    return redirect(url_for("departments.departments_list"))


# ---------- Delete ----------
@bp.post("/admin/departments/<int:department_id>/delete")
@admin_required
def department_delete(department_id: int):
    s = db_session()
    department = _get_or_redirect(s, department_id)
    if department is None:
        return redirect(url_for("departments.departments_list"))

    try:
        delete_department(s, department)
        s.commit()
    except DepartmentInUseError as e:
        s.rollback()
        flash(str(e), "danger")
        return redirect(url_for("departments.departments_list"))
    except SQLAlchemyError:
        return db_error_redirect(s, "deleting department", "departments.departments_list")

    flash("Department deleted successfully", "success")
    return redirect(url_for("departments.departments_list"))


# ---------- Professions offered by a department ----------
@bp.get("/admin/departments/<int:department_id>/professions")
@admin_required
def department_professions_get(department_id: int):
    s = db_session()
    department = _get_or_redirect(s, department_id)
    if department is None:
        return redirect(url_for("departments.departments_list"))
    selected = {p.id for p in department.professions}
    return render_template(
        "departments/professions.html",
        department=department,
        professions=list_professions(s),
        selected=selected,
        title=f"Professions in {department.name}",
    )


@bp.post("/admin/departments/<int:department_id>/professions")
@admin_required
def department_professions_post(department_id: int):
    s = db_session()
    department = _get_or_redirect(s, department_id)
    if department is None:
        return redirect(url_for("departments.departments_list"))

    ids = [i for i in (parse_int(v) for v in request.form.getlist("profession_id")) if i is not None]
    try:
        kept = set_department_professions(s, department, ids)
        s.commit()
    except SQLAlchemyError:
        return db_error_redirect(
            s, "updating department professions", "departments.department_professions_get", department_id=department_id
        )

    if kept:
        flash(f"Still held by employees, kept: {', '.join(kept)}", "warning")
    flash("Department professions updated successfully", "success")
    return redirect(url_for("departments.department_professions_get", department_id=department_id))
