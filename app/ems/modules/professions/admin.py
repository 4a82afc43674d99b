from __future__ import annotations

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.ems.db import db_session
from app.ems.modules.professions.models import Profession
from app.ems.modules.professions.service import (
    ProfessionInUseError,
    create_profession,
    delete_profession,
    list_professions,
    update_profession,
    validate_profession_payload,
)
from app.ems.rbac import admin_required
from app.ems.utils import db_error_redirect, flash_errors

bp = Blueprint("professions", __name__)


def _get_or_flash(s, profession_id: int) -> Profession | None:
    profession = s.get(Profession, profession_id)
    if profession is None:
        flash("Profession not found", "danger")
    return profession


# ---------- List ----------
@bp.get("/professions")
@admin_required
def professions_list():
    s = db_session()
    try:
        professions = list_professions(s)
    except SQLAlchemyError:
        return db_error_redirect(s, "fetching professions", "routes.index")
    return render_template("professions/list.html", professions=professions, title="Professions")


# ---------- New ----------
@bp.get("/professions/new")
@admin_required
def professions_new_get():
    return render_template("professions/form.html", profession=None, title="Create Profession")


@bp.post("/professions/new")
@admin_required
def professions_new_post():
    s = db_session()
    payload = {"name": request.form.get("name")}

    errors = validate_profession_payload(payload)
    if errors:
        flash_errors(errors)
        return redirect(url_for("professions.professions_new_get"))

    try:
        profession = create_profession(s, payload)
        s.commit()
    except SQLAlchemyError:
        return db_error_redirect(s, "adding profession", "professions.professions_new_get")

    current_app.logger.info("Profession created (id=%s)", profession.id)
    flash("Profession added successfully", "success")
    return redirect(url_for("professions.professions_list"))


# ---------- Edit ----------
@bp.get("/professions/<int:profession_id>/edit")
@admin_required
def profession_edit_get(profession_id: int):
    s = db_session()
    profession = _get_or_flash(s, profession_id)
    if profession is None:
        return redirect(url_for("professions.professions_list"))
    return render_template("professions/form.html", profession=profession, title="Edit Profession")


@bp.post("/professions/<int:profession_id>/edit")
@admin_required
def profession_edit_post(profession_id: int):
    s = db_session()
    profession = _get_or_flash(s, profession_id)
    if profession is None:
        return redirect(url_for("professions.professions_list"))

    payload = {"name": request.form.get("name")}
    errors = validate_profession_payload(payload)
    if errors:
        flash_errors(errors)
        return redirect(url_for("professions.profession_edit_get", profession_id=profession_id))

    try:
        update_profession(s, profession, payload)
        s.commit()
    except SQLAlchemyError:
        return db_error_redirect(s, "updating profession", "professions.profession_edit_get", profession_id=profession_id)

    flash("Profession updated successfully", "success")
    return redirect(url_for("professions.professions_list"))


# ---------- Delete ----------
@bp.post("/professions/<int:profession_id>/delete")
@admin_required
def profession_delete(profession_id: int):
    s = db_session()
    profession = _get_or_flash(s, profession_id)
    if profession is None:
        return redirect(url_for("professions.professions_list"))

    try:
        delete_profession(s, profession)
        s.commit()
    except ProfessionInUseError as e:
        s.rollback()
        flash(str(e), "danger")
        return redirect(url_for("professions.professions_list"))
    except SQLAlchemyError:
        return db_error_redirect(s, "deleting profession", "professions.professions_list")

    flash("Profession deleted successfully", "success")
    return redirect(url_for("professions.professions_list"))
