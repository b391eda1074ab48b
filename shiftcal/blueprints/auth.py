"""Session login and logout."""

from __future__ import annotations

from flask import Blueprint, request
from flask_login import current_user, login_required, login_user, logout_user

from shiftcal.errors import ValidationFailed
from shiftcal.extensions import db
from shiftcal.forms import LoginForm
from shiftcal.users import authenticate


bp = Blueprint("auth", __name__)


def _login_form() -> LoginForm:
    if request.is_json:
        return LoginForm.from_json(request.get_json(silent=True) or {})
    return LoginForm(formdata=request.form)


@bp.errorhandler(ValidationFailed)
def handle_validation_error(error: ValidationFailed):
    return {"success": False, "error": error.to_dict()}, error.status_code


@bp.post("/login")
def login():
    form = _login_form()
    if not form.validate():
        raise ValidationFailed(fields=form.error_fields())

    user = authenticate(db.session, form.email.data, form.password.data)
    if user is None:
        return {
            "success": False,
            "error": {"code": "INVALID_CREDENTIALS", "message": "Invalid credentials."},
        }, 401
    if not user.is_active:
        return {
            "success": False,
            "error": {"code": "USER_INACTIVE", "message": "User is inactive."},
        }, 403

    login_user(user)
    return {"success": True, "data": {"user_id": str(user.id), "email": user.email}}, 200


@bp.post("/logout")
@login_required
def logout():
    user_id = current_user.get_id()
    logout_user()
    return {"success": True, "data": {"user_id": user_id}}, 200
