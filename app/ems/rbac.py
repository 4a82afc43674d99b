from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, g, redirect, request, url_for

from app.ems.models import User


def user_is_admin(user: User | None) -> bool:
    return bool(user and user.is_admin)


def _login_redirect():
    nxt = request.full_path or request.path
    # Avoid trailing '?' from full_path when there is no query string.
    if nxt.endswith("?"):
        nxt = nxt[:-1]
    return redirect(url_for("auth.login_get", next=nxt))


def login_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if getattr(g, "current_user", None) is None:
            return _login_redirect()
        return fn(*args, **kwargs)

    return wrapped


def admin_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        # Unauthenticated → redirect to login.
        if user is None:
            return _login_redirect()
        # Authenticated but not an admin → 403
        if not user_is_admin(user):
            g.missing_permission = "admin"
            abort(403)
        return fn(*args, **kwargs)

    return wrapped
