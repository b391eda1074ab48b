"""Unit-of-work helper around the Flask-SQLAlchemy session."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from shiftcal.extensions import db


@contextmanager
def unit_of_work(session: Session | None = None) -> Iterator[Session]:
    """Commit on success, roll back before re-raising on any failure.

    The yielded session is the only transaction handle the steps inside the
    block may use; nothing inside opens a nested transaction.
    """
    session = session if session is not None else db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
