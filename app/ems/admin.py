from flask import Blueprint, current_app, flash, g, render_template
from sqlalchemy.exc import SQLAlchemyError

from app.ems.db import db_session
from app.ems.models import User
from app.ems.modules.employees.service import employees_with_details
from app.ems.rbac import admin_required
from app.ems.utils import GENERIC_ERROR

bp = Blueprint("admin", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


@bp.get("/")
@admin_required
def index():
    s = db_session()
    try:
        rows = employees_with_details(s)
    except SQLAlchemyError:
        # Rendering the panel empty: redirecting here would loop.
        s.rollback()
        current_app.logger.exception("Error fetching employees for admin panel")
        flash(GENERIC_ERROR, "danger")
        rows = []
    return render_template("admin/index.html", rows=rows, user=_current_user(), title="Admin Panel")

