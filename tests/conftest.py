from __future__ import annotations

from typing import Iterator
import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from shiftcal import create_app
from shiftcal.config import Config
from shiftcal.extensions import db
from shiftcal.models import User
from shiftcal.users import create_user


OWNER_EMAIL = "owner@example.com"
OTHER_EMAIL = "other@example.com"
PASSWORD = "password123"


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }
    APP_TIMEZONE = "UTC"
    VERSION_FALLBACK_ENABLED = True


@pytest.fixture()
def app() -> Iterator:
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        create_user(db.session, OWNER_EMAIL, PASSWORD)
        create_user(db.session, OTHER_EMAIL, PASSWORD)
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def other_client(app):
    return app.test_client()


def _user_id(email: str) -> uuid.UUID:
    return db.session.execute(select(User.id).where(User.email == email)).scalar_one()


@pytest.fixture()
def owner_id(app) -> uuid.UUID:
    return _user_id(OWNER_EMAIL)


@pytest.fixture()
def other_id(app) -> uuid.UUID:
    return _user_id(OTHER_EMAIL)
