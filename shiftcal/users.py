"""User accounts and password hashing."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from shiftcal.audit import log_audit
from shiftcal.models import User
from shiftcal.templates import ensure_default_template


def hash_secret(raw_value: str) -> str:
    return generate_password_hash(raw_value, method="pbkdf2:sha256", salt_length=16)


def verify_secret(secret_hash: str, raw_value: str) -> bool:
    return check_password_hash(secret_hash, raw_value)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_user(session: Session, email: str, password: str) -> User:
    """Create an account together with its default shift template."""
    user = User(email=normalize_email(email), password_hash=hash_secret(password), is_active=True)
    session.add(user)
    session.flush()
    ensure_default_template(session, user.id)
    log_audit(
        session,
        user.id,
        action="USER_CREATED",
        entity_type="users",
        entity_id=user.id,
        payload={"email": user.email},
    )
    return user


def authenticate(session: Session, email: str, password: str) -> User | None:
    user = session.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()
    if user is None or not verify_secret(user.password_hash, password):
        return None
    return user
