import logging
from datetime import timedelta

from flask import Flask, g, render_template, request, session
from dotenv import load_dotenv
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from app.ems.config import load_config
from app.ems.db import init_db, teardown_db_session
from app.ems.models import Base
from app.ems.routes import bp as routes_bp
from app.ems.auth import bp as auth_bp, load_current_user
from app.ems.admin import bp as admin_bp
from app.ems.modules.departments.admin import bp as departments_bp
from app.ems.modules.professions.admin import bp as professions_bp
from app.ems.modules.employees.admin import bp as employees_bp

_UNGUARDED_PATHS = ("/static/", "/health", "/healthz")


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.logger.setLevel(app.config["LOG_LEVEL"])

    from app.ems.security import ensure_csrf_token, validate_csrf
    from app.ems.rbac import user_is_admin

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_user() -> dict:
        user = getattr(g, "current_user", None)
        return {"current_user": user, "is_admin": user_is_admin(user)}

    @app.template_filter("money")
    def _money_filter(value) -> str:
        if value is None:
            return "—"
        return f"{value:,.2f}"

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(_UNGUARDED_PATHS):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # login carries no session-bound state yet
            if request.endpoint == "auth.login_post":
                return None
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must not be sqlite in production.")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(departments_bp)
    app.register_blueprint(professions_bp, url_prefix="/admin")
    app.register_blueprint(employees_bp)

    def _load_user_wrapper():
        if request.path.startswith(_UNGUARDED_PATHS):
            g.current_user = None
            return None
        return load_current_user()

    app.before_request(_load_user_wrapper)
    app.teardown_appcontext(teardown_db_session)

    # Schema health: checked per request until it passes once.
    app.config.setdefault("_schema_health_ok", None)
    app.config.setdefault("_schema_health_missing", [])

    def _run_schema_health_check() -> None:
        missing: list[str] = []
        try:
            insp = sa_inspect(app.extensions["sqlalchemy_engine"])
            for table in Base.metadata.sorted_tables:
                if not insp.has_table(table.name):
                    missing.append(f"{table.name} (table)")
        except SQLAlchemyError as e:
            app.logger.exception("Schema health check failed: %s", e)
            return

        if missing:
            app.logger.error("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))
        app.config["_schema_health_missing"] = missing
        app.config["_schema_health_ok"] = not missing

    @app.before_request
    def _schema_health_guardrail():  # type: ignore[no-redef]
        if request.path.startswith(_UNGUARDED_PATHS):
            return None
        if app.config.get("_schema_health_ok") is not True:
            _run_schema_health_check()
        if app.config.get("_schema_health_ok") is False:
            return render_template("errors/schema_out_of_date.html", missing=app.config.get("_schema_health_missing") or []), 500
        return None

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        missing = getattr(g, "missing_permission", None)
        if missing:
            app.logger.warning("Forbidden: missing_permission=%s request_id=%s", missing, getattr(g, "request_id", None))
        return render_template("errors/403.html", missing_permission=missing), 403

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
