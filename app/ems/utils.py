from __future__ import annotations

from flask import current_app, flash, redirect, url_for
from sqlalchemy.orm import Session

GENERIC_ERROR = "Internal Server Error"


def flash_errors(errors: list[str]) -> None:
    for e in errors:
        flash(e, "danger")


def db_error_redirect(s: Session, what: str, endpoint: str, **values):
    """
    Roll back, log the active exception and send the user back to the form.
    Call from inside an `except SQLAlchemyError` block.
    """
    s.rollback()
    current_app.logger.exception("Error %s", what)
    flash(GENERIC_ERROR, "danger")
    return redirect(url_for(endpoint, **values))
