"""Shift type registry scoped to the owner's active template."""

from __future__ import annotations

import uuid
from datetime import time
from typing import Any, Mapping

from flask import current_app
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from shiftcal.audit import log_audit
from shiftcal.errors import (
    DuplicateCode,
    Forbidden,
    InUse,
    MaxShiftTypesExceeded,
    ShiftTypeNotFound,
    ValidationFailed,
)
from shiftcal.models import ShiftTemplate, ShiftType, ShiftTypeSchedule, now_utc
from shiftcal.schedules import apply_times, create_schedule, find_schedule, schedule_in_use
from shiftcal.templates import get_active_template
from shiftcal.time_info import UNTIMED, ScheduleTimes, format_clock, schedule_times
from shiftcal.versions import current_version


DEFAULT_MAX_SHIFT_TYPES = 10
EDITABLE_FIELDS = ("code", "name", "color", "sort_order")


def max_shift_types() -> int:
    return int(current_app.config.get("MAX_SHIFT_TYPES_PER_TEMPLATE", DEFAULT_MAX_SHIFT_TYPES))


def _live_types_stmt(template_id: uuid.UUID):
    return select(ShiftType).where(ShiftType.template_id == template_id, ShiftType.deleted_at.is_(None))


def find_shift_type_by_code(session: Session, template_id: uuid.UUID, code: str) -> ShiftType | None:
    return session.execute(
        _live_types_stmt(template_id)
        .where(ShiftType.code == code)
        .order_by(ShiftType.created_at.asc())
        .limit(1)
    ).scalar_one_or_none()


def _times_from_input(start: str | time | None, end: str | time | None) -> ScheduleTimes:
    try:
        return schedule_times(start, end)
    except ValueError as exc:
        raise ValidationFailed(str(exc), fields=["start_time", "end_time"]) from exc


def shift_type_payload(shift_type: ShiftType, schedule: ShiftTypeSchedule | None) -> dict[str, Any]:
    times = schedule.times if schedule is not None else UNTIMED
    return {
        "shift_type_id": str(shift_type.id),
        "code": shift_type.code,
        "name": shift_type.name,
        "color": shift_type.color,
        "sort_order": shift_type.sort_order,
        "start_time": format_clock(times.start),
        "end_time": format_clock(times.end),
        "crosses_midnight": times.crosses_midnight,
        "duration_minutes": times.duration_minutes,
    }


def list_shift_types(session: Session, owner_user_id: uuid.UUID) -> dict[str, Any]:
    template = get_active_template(session, owner_user_id)
    version = current_version(session, template.id)
    rows = session.execute(
        select(ShiftType, ShiftTypeSchedule)
        .outerjoin(
            ShiftTypeSchedule,
            and_(
                ShiftTypeSchedule.shift_type_id == ShiftType.id,
                ShiftTypeSchedule.template_version_id == version.id,
            ),
        )
        .where(ShiftType.template_id == template.id, ShiftType.deleted_at.is_(None))
        .order_by(ShiftType.sort_order.asc(), ShiftType.created_at.asc())
    ).all()
    return {
        "template_id": str(template.id),
        "template_name": template.name,
        "template_version_id": str(version.id),
        "shift_types": [shift_type_payload(shift_type, schedule) for shift_type, schedule in rows],
    }


def create_shift_type(
    session: Session,
    owner_user_id: uuid.UUID,
    *,
    code: str,
    name: str,
    color: int | None = None,
    start_time: str | time | None = None,
    end_time: str | time | None = None,
    sort_order: int | None = None,
) -> dict[str, Any]:
    template = get_active_template(session, owner_user_id)
    times = _times_from_input(start_time, end_time)

    live_count = session.execute(
        select(func.count(ShiftType.id)).where(
            ShiftType.template_id == template.id,
            ShiftType.deleted_at.is_(None),
        )
    ).scalar_one()
    limit = max_shift_types()
    if live_count >= limit:
        raise MaxShiftTypesExceeded(limit)

    if find_shift_type_by_code(session, template.id, code) is not None:
        raise DuplicateCode(code=code)

    if sort_order is None:
        max_sort = session.execute(
            select(func.max(ShiftType.sort_order)).where(
                ShiftType.template_id == template.id,
                ShiftType.deleted_at.is_(None),
            )
        ).scalar_one_or_none()
        sort_order = (max_sort or 0) + 1

    shift_type = ShiftType(
        template_id=template.id,
        code=code,
        name=name,
        color=color,
        sort_order=sort_order,
    )
    session.add(shift_type)
    session.flush()

    # Work shifts need a schedule row to reference, so one always exists.
    version = current_version(session, template.id)
    schedule = create_schedule(session, shift_type.id, version.id, times)

    payload = shift_type_payload(shift_type, schedule)
    log_audit(
        session,
        owner_user_id,
        action="SHIFT_TYPE_CREATED",
        entity_type="shift_types",
        entity_id=shift_type.id,
        payload=dict(payload),
    )
    payload["created_at"] = shift_type.created_at.isoformat()
    return payload


def _owned_shift_type(session: Session, owner_user_id: uuid.UUID, shift_type_id: uuid.UUID) -> ShiftType:
    row = session.execute(
        select(ShiftType, ShiftTemplate)
        .join(ShiftTemplate, ShiftTemplate.id == ShiftType.template_id)
        .where(ShiftType.id == shift_type_id, ShiftType.deleted_at.is_(None))
    ).one_or_none()
    if row is None:
        raise ShiftTypeNotFound()
    shift_type, template = row
    if template.owner_user_id != owner_user_id:
        raise Forbidden()
    return shift_type


def update_shift_type(
    session: Session,
    owner_user_id: uuid.UUID,
    shift_type_id: uuid.UUID,
    changes: Mapping[str, Any],
) -> dict[str, Any]:
    """Apply a partial update.

    Only keys present in ``changes`` are touched. ``start_time`` and
    ``end_time`` must be given together; their values only affect the
    current version's schedule.
    """
    shift_type = _owned_shift_type(session, owner_user_id, shift_type_id)

    has_start = "start_time" in changes
    has_end = "end_time" in changes
    if has_start != has_end:
        raise ValidationFailed(
            "start_time and end_time must be updated together.",
            fields=["start_time", "end_time"],
        )
    new_times = _times_from_input(changes["start_time"], changes["end_time"]) if has_start else None

    new_code = changes.get("code")
    if new_code is not None and new_code != shift_type.code:
        clash = find_shift_type_by_code(session, shift_type.template_id, new_code)
        if clash is not None and clash.id != shift_type.id:
            raise DuplicateCode(code=new_code)

    before = {field: getattr(shift_type, field) for field in EDITABLE_FIELDS}
    for field in EDITABLE_FIELDS:
        if field in changes:
            setattr(shift_type, field, changes[field])

    version = current_version(session, shift_type.template_id)
    schedule = find_schedule(session, shift_type.id, version.id)

    if new_times is not None and new_times.is_timed:
        if schedule is None:
            schedule = create_schedule(session, shift_type.id, version.id, new_times)
        else:
            apply_times(schedule, new_times)
    elif new_times is not None and schedule is not None:
        if schedule_in_use(session, [schedule.id], include_deleted=True):
            # Referenced rows keep their schedule; only the hours are cleared.
            apply_times(schedule, UNTIMED)
        else:
            session.delete(schedule)
            schedule = None

    session.flush()
    payload = shift_type_payload(shift_type, schedule)
    log_audit(
        session,
        owner_user_id,
        action="SHIFT_TYPE_UPDATED",
        entity_type="shift_types",
        entity_id=shift_type.id,
        payload={"before": before, "after": dict(payload), "template_version_id": str(version.id)},
    )
    payload["updated_at"] = now_utc().isoformat()
    return payload


def delete_shift_type(session: Session, owner_user_id: uuid.UUID, shift_type_id: uuid.UUID) -> dict[str, Any]:
    shift_type = _owned_shift_type(session, owner_user_id, shift_type_id)

    schedule_ids = list(
        session.execute(
            select(ShiftTypeSchedule.id).where(ShiftTypeSchedule.shift_type_id == shift_type.id)
        ).scalars().all()
    )
    if schedule_in_use(session, schedule_ids):
        raise InUse()

    shift_type.deleted_at = now_utc()
    log_audit(
        session,
        owner_user_id,
        action="SHIFT_TYPE_DELETED",
        entity_type="shift_types",
        entity_id=shift_type.id,
        payload={"code": shift_type.code, "name": shift_type.name},
    )
    session.flush()
    return {"shift_type_id": str(shift_type.id), "deleted_at": shift_type.deleted_at.isoformat()}
