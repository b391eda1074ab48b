"""Flask extension instances."""

from __future__ import annotations

import uuid

from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect


db = SQLAlchemy()
login_manager = LoginManager()
csrf = CSRFProtect()


@login_manager.unauthorized_handler
def handle_unauthorized():
    return {
        "success": False,
        "error": {"code": "UNAUTHORIZED", "message": "Authentication required."},
    }, 401


@login_manager.user_loader
def load_user(user_id: str):
    from shiftcal.models import User

    try:
        parsed = uuid.UUID(user_id)
    except ValueError:
        return None
    return db.session.get(User, parsed)
