"""Shift template store: one live template per owner and its versions."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftcal.audit import log_audit
from shiftcal.errors import DuplicateEffectiveDate, DuplicateName, TemplateNotFound
from shiftcal.models import ShiftTemplate, ShiftTemplateVersion, ShiftType
from shiftcal.schedules import copy_schedules, create_schedule
from shiftcal.time_info import schedule_times
from shiftcal.versions import current_version, next_version_no, resolve_version_for_date


DEFAULT_TEMPLATE_NAME = "Default rotation"

DEFAULT_SHIFT_TYPES: tuple[dict[str, Any], ...] = (
    {"code": "D", "name": "Day", "color": 0xFFF5A623, "start": "06:30", "end": "15:00", "sort_order": 1},
    {"code": "E", "name": "Evening", "color": 0xFFE91E63, "start": "14:30", "end": "23:00", "sort_order": 2},
    {"code": "N", "name": "Night", "color": 0xFF5856D6, "start": "22:30", "end": "07:00", "sort_order": 3},
    {"code": "OFF", "name": "Off", "color": 0xFF34C759, "start": None, "end": None, "sort_order": 4},
)


def app_today() -> date:
    tz_name = current_app.config.get("APP_TIMEZONE", "UTC")
    try:
        tz = ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        current_app.logger.warning("Unknown APP_TIMEZONE %r, using UTC.", tz_name)
        tz = ZoneInfo("UTC")
    return datetime.now(tz).date()


def find_active_template(session: Session, owner_user_id: uuid.UUID) -> ShiftTemplate | None:
    return session.execute(
        select(ShiftTemplate).where(
            ShiftTemplate.owner_user_id == owner_user_id,
            ShiftTemplate.deleted_at.is_(None),
        )
    ).scalar_one_or_none()


def get_active_template(session: Session, owner_user_id: uuid.UUID) -> ShiftTemplate:
    template = find_active_template(session, owner_user_id)
    if template is None:
        raise TemplateNotFound()
    return template


def create_default_template(session: Session, owner_user_id: uuid.UUID) -> ShiftTemplate:
    template = ShiftTemplate(owner_user_id=owner_user_id, name=DEFAULT_TEMPLATE_NAME)
    session.add(template)
    session.flush()

    version = ShiftTemplateVersion(
        template_id=template.id,
        version_no=1,
        effective_from=app_today(),
        created_by_user_id=owner_user_id,
    )
    session.add(version)
    session.flush()

    for default in DEFAULT_SHIFT_TYPES:
        shift_type = ShiftType(
            template_id=template.id,
            code=default["code"],
            name=default["name"],
            color=default["color"],
            sort_order=default["sort_order"],
        )
        session.add(shift_type)
        session.flush()
        create_schedule(session, shift_type.id, version.id, schedule_times(default["start"], default["end"]))

    log_audit(
        session,
        owner_user_id,
        action="SHIFT_TEMPLATE_CREATED",
        entity_type="shift_templates",
        entity_id=template.id,
        payload={"name": template.name, "version_no": version.version_no},
    )
    return template


def ensure_default_template(session: Session, owner_user_id: uuid.UUID) -> ShiftTemplate:
    template = find_active_template(session, owner_user_id)
    if template is not None:
        return template
    template = create_default_template(session, owner_user_id)
    current_app.logger.info("Default shift template created for user %s.", owner_user_id)
    return template


def version_summary(version: ShiftTemplateVersion) -> dict[str, Any]:
    return {
        "template_version_id": str(version.id),
        "version_no": version.version_no,
        "effective_from": version.effective_from.isoformat(),
        "created_at": version.created_at.isoformat(),
    }


def get_current_template(session: Session, owner_user_id: uuid.UUID) -> dict[str, Any]:
    template = get_active_template(session, owner_user_id)
    try:
        version_payload = version_summary(current_version(session, template.id))
    except TemplateNotFound:
        version_payload = None
    return {
        "template_id": str(template.id),
        "template_name": template.name,
        "owner_user_id": str(template.owner_user_id),
        "created_at": template.created_at.isoformat(),
        "current_version": version_payload,
    }


def rename_template(session: Session, owner_user_id: uuid.UUID, name: str) -> ShiftTemplate:
    template = get_active_template(session, owner_user_id)
    clash = session.execute(
        select(ShiftTemplate.id).where(
            ShiftTemplate.owner_user_id == owner_user_id,
            ShiftTemplate.name == name,
            ShiftTemplate.deleted_at.is_(None),
            ShiftTemplate.id != template.id,
        )
    ).scalar_one_or_none()
    if clash is not None:
        raise DuplicateName()

    previous_name = template.name
    template.name = name
    log_audit(
        session,
        owner_user_id,
        action="SHIFT_TEMPLATE_RENAMED",
        entity_type="shift_templates",
        entity_id=template.id,
        payload={"before": previous_name, "after": name},
    )
    session.flush()
    return template


def create_template_version(
    session: Session,
    owner_user_id: uuid.UUID,
    effective_from: date,
) -> ShiftTemplateVersion:
    """Open a new in-force period starting at ``effective_from``.

    The new version starts with a copy of the schedules in force on that
    date so existing shift types keep their hours until edited.
    """
    template = get_active_template(session, owner_user_id)
    clash = session.execute(
        select(ShiftTemplateVersion.id).where(
            ShiftTemplateVersion.template_id == template.id,
            ShiftTemplateVersion.effective_from == effective_from,
        )
    ).scalar_one_or_none()
    if clash is not None:
        raise DuplicateEffectiveDate(effective_from)

    source_version = resolve_version_for_date(session, template.id, effective_from)
    version = ShiftTemplateVersion(
        template_id=template.id,
        version_no=next_version_no(session, template.id),
        effective_from=effective_from,
        created_by_user_id=owner_user_id,
    )
    session.add(version)
    session.flush()

    live_type_ids = list(
        session.execute(
            select(ShiftType.id).where(
                ShiftType.template_id == template.id,
                ShiftType.deleted_at.is_(None),
            )
        ).scalars().all()
    )
    copied = copy_schedules(session, source_version.id, version.id, live_type_ids)
    log_audit(
        session,
        owner_user_id,
        action="SHIFT_TEMPLATE_VERSION_CREATED",
        entity_type="shift_template_versions",
        entity_id=version.id,
        payload={
            "version_no": version.version_no,
            "effective_from": effective_from.isoformat(),
            "source_version_no": source_version.version_no,
            "schedules_copied": len(copied),
        },
    )
    return version
