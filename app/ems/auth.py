from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, session, url_for
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from app.ems.db import db_session
from app.ems.models import User
from app.ems.rbac import login_required, user_is_admin
from app.ems.utils import db_error_redirect

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    recent = [t for t in _login_attempts.get(ip, ()) if t > cutoff]
    if not recent:
        _login_attempts.pop(ip, None)
        return False
    _login_attempts[ip] = recent
    return len(recent) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def _safe_next(nxt: str) -> str | None:
    # Only allow local paths to avoid open redirects.
    if nxt.startswith("/") and not nxt.startswith("//"):
        return nxt
    return None


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    try:
        s = db_session()
        user = s.get(User, int(user_id))
    except (SQLAlchemyError, ValueError) as e:
        current_app.logger.error("load_current_user failed (clearing session): %s", e)
        user = None
    if user is None:
        session.pop("user_id", None)
    g.current_user = user


@bp.get("/register")
def register_get():
    return render_template("auth/register.html")


@bp.post("/register")
def register_post():
    name = (request.form.get("name") or "").strip()
    password = request.form.get("password") or ""
    wants_admin = (request.form.get("admin") or "").strip().lower() in ("true", "on", "1")

    if not name or not password:
        flash("Name and password are required", "danger")
        return redirect(url_for("auth.register_get"))

    s = db_session()
    try:
        is_admin = False
        if wants_admin:
            first_user = (s.scalar(select(func.count(User.id))) or 0) == 0
            is_admin = (
                first_user
                or user_is_admin(getattr(g, "current_user", None))
                or bool(current_app.config.get("ADMIN_SELF_REGISTRATION"))
            )
            if not is_admin:
                current_app.logger.warning("Admin flag ignored on self-registration (name=%s)", name)

        s.add(User(name=name, password_hash=generate_password_hash(password), is_admin=is_admin))
        s.commit()
    except IntegrityError:
        s.rollback()
        flash("User with this name already exists", "danger")
        return redirect(url_for("auth.register_get"))
    except SQLAlchemyError:
        return db_error_redirect(s, "registering user", "auth.register_get")

    flash("Registration successful!", "success")
    return redirect(url_for("auth.login_get"))


@bp.get("/login")
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", next=nxt)


@bp.post("/login")
def login_post():
    name = (request.form.get("name") or "").strip()
    password = request.form.get("password") or ""
    nxt = (request.form.get("next") or "").strip()
    ip = request.remote_addr or "unknown"

    if not name or not password:
        flash("Name and password are required", "danger")
        return redirect(url_for("auth.login_get", next=nxt or None))

    if _check_rate_limit(ip):
        current_app.logger.warning("Login rate limit hit (ip=%s)", ip)
        flash("Too many login attempts. Please wait 5 minutes.", "danger")
        return redirect(url_for("auth.login_get"))

    _record_attempt(ip)

    s = db_session()
    try:
        user = s.scalars(select(User).where(User.name == name).limit(1)).first()
    except SQLAlchemyError:
        return db_error_redirect(s, "looking up user for login", "auth.login_get")

    if not user or not check_password_hash(user.password_hash, password):
        current_app.logger.info("Login failed (name=%s request_id=%s)", name, getattr(g, "request_id", None))
        flash("Incorrect name or password.", "danger")
        return redirect(url_for("auth.login_get", next=nxt or None))

    # one authenticated user per session
    session.pop("user_id", None)
    session["user_id"] = user.id
    _login_attempts.pop(ip, None)
    flash("Welcome!", "success")
    return redirect(_safe_next(nxt) or url_for("routes.index"))


@bp.get("/logout")
def logout():
    session.pop("user_id", None)
    flash("You have been logged out successfully", "success")
    return redirect(url_for("routes.index"))


@bp.get("/me")
@login_required
def me():
    return render_template("auth/me.html", user=g.current_user, title="My account")
