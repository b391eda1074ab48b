"""General routes."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from shiftcal.extensions import db


bp = Blueprint("main", __name__)


@bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except (OperationalError, ProgrammingError):
        db.session.rollback()
        current_app.logger.warning("Database health probe failed.", exc_info=True)
        return {"status": "degraded", "database": "unavailable"}, 503
    return {"status": "ok", "database": "ok"}, 200
