"""Effective-dated lookup of shift template versions."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shiftcal.errors import NoValidVersionForDate, TemplateNotFound
from shiftcal.models import ShiftTemplateVersion


def _versions_stmt(template_id: uuid.UUID):
    return select(ShiftTemplateVersion).where(ShiftTemplateVersion.template_id == template_id)


def current_version(session: Session, template_id: uuid.UUID) -> ShiftTemplateVersion:
    """The version with the greatest ``effective_from``; always queried, never cached."""
    version = session.execute(
        _versions_stmt(template_id).order_by(ShiftTemplateVersion.effective_from.desc()).limit(1)
    ).scalar_one_or_none()
    if version is None:
        raise TemplateNotFound()
    return version


def resolve_version_for_date(
    session: Session,
    template_id: uuid.UUID,
    day: date,
    *,
    fallback: bool = True,
) -> ShiftTemplateVersion:
    """Return the version in force on ``day``.

    Dates before the earliest version resolve to the latest version when
    ``fallback`` is set; otherwise ``NoValidVersionForDate`` is raised.
    """
    version = session.execute(
        _versions_stmt(template_id)
        .where(ShiftTemplateVersion.effective_from <= day)
        .order_by(ShiftTemplateVersion.effective_from.desc())
        .limit(1)
    ).scalar_one_or_none()
    if version is not None:
        return version

    if fallback:
        return current_version(session, template_id)

    earliest = session.execute(
        select(func.min(ShiftTemplateVersion.effective_from)).where(
            ShiftTemplateVersion.template_id == template_id
        )
    ).scalar_one_or_none()
    if earliest is None:
        raise TemplateNotFound()
    raise NoValidVersionForDate(day, earliest)


def next_version_no(session: Session, template_id: uuid.UUID) -> int:
    latest_no = session.execute(
        select(func.max(ShiftTemplateVersion.version_no)).where(ShiftTemplateVersion.template_id == template_id)
    ).scalar_one_or_none()
    return (latest_no or 0) + 1
