"""Work-shift reconciliation.

Maps ``(work_date, shift_type_code, note)`` requests onto ``WorkShift``
rows. A single upsert binds the date to the schedule of the template's
current version. A batch binds every entry to the version in force on that
entry's own date, so one batch may straddle a version boundary. Batches run
in one unit of work and are applied completely or not at all.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Sequence

from flask import current_app
from sqlalchemy import case, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from shiftcal.audit import log_audit
from shiftcal.errors import (
    BatchTooLarge,
    DuplicateDate,
    InvalidShiftType,
    ShiftTypeNotFound,
    TemplateNotFound,
    TemplateVersionNotFound,
    ValidationFailed,
    WorkShiftNotFound,
)
from shiftcal.models import ShiftType, ShiftTypeSchedule, WorkShift, now_utc
from shiftcal.schedules import resolve_or_create_schedule
from shiftcal.shift_types import find_shift_type_by_code
from shiftcal.templates import get_active_template
from shiftcal.time_info import format_clock
from shiftcal.transaction import unit_of_work
from shiftcal.versions import current_version, resolve_version_for_date


DEFAULT_BATCH_MAX_SIZE = 100

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class WorkShiftEntry:
    work_date: date
    shift_type_code: str
    note: str | None = None


def batch_max_size() -> int:
    return int(current_app.config.get("WORK_SHIFT_BATCH_MAX_SIZE", DEFAULT_BATCH_MAX_SIZE))


def _details_stmt():
    return (
        select(WorkShift, ShiftTypeSchedule, ShiftType)
        .join(ShiftTypeSchedule, ShiftTypeSchedule.id == WorkShift.schedule_id)
        .join(ShiftType, ShiftType.id == ShiftTypeSchedule.shift_type_id)
        .execution_options(populate_existing=True)
    )


def work_shift_payload(work_shift: WorkShift, schedule: ShiftTypeSchedule, shift_type: ShiftType) -> dict[str, Any]:
    times = schedule.times
    return {
        "work_shift_id": str(work_shift.id),
        "work_date": work_shift.work_date.isoformat(),
        "shift_type_code": shift_type.code,
        "shift_type_name": shift_type.name,
        "shift_type_color": shift_type.color,
        "template_version_id": str(schedule.template_version_id),
        "start_time": format_clock(times.start),
        "end_time": format_clock(times.end),
        "crosses_midnight": times.crosses_midnight,
        "duration_minutes": times.duration_minutes,
        "note": work_shift.note,
        "created_at": work_shift.created_at.isoformat(),
        "updated_at": work_shift.updated_at.isoformat(),
    }


def work_shift_details(session: Session, work_shift_ids: Sequence[uuid.UUID]) -> list[dict[str, Any]]:
    if not work_shift_ids:
        return []
    rows = session.execute(_details_stmt().where(WorkShift.id.in_(list(work_shift_ids)))).all()
    return [work_shift_payload(*row) for row in rows]


def list_work_shifts(session: Session, owner_user_id: uuid.UUID, start: date, end: date) -> list[dict[str, Any]]:
    if start > end:
        raise ValidationFailed("start_date must not be after end_date.", fields=["start_date", "end_date"])
    rows = session.execute(
        _details_stmt()
        .where(
            WorkShift.owner_user_id == owner_user_id,
            WorkShift.work_date >= start,
            WorkShift.work_date <= end,
            WorkShift.deleted_at.is_(None),
        )
        .order_by(WorkShift.work_date.asc())
    ).all()
    return [work_shift_payload(*row) for row in rows]


def get_day(session: Session, owner_user_id: uuid.UUID, day: date) -> dict[str, Any]:
    return {"date": day.isoformat(), "work_shifts": list_work_shifts(session, owner_user_id, day, day)}


def _write_work_shift(
    session: Session,
    owner_user_id: uuid.UUID,
    work_date: date,
    schedule_id: uuid.UUID,
    note: str | None,
) -> uuid.UUID:
    """Insert or overwrite the row for ``(owner, work_date)`` and return its id.

    A live row keeps its creation stamps; a soft-deleted row is revived as a
    new live row.
    """
    dialect_name = session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect_name)
    if insert is None:
        raise RuntimeError(f"Work shift upsert is not supported on {dialect_name!r}.")

    now = now_utc()
    stmt = insert(WorkShift).values(
        id=uuid.uuid4(),
        owner_user_id=owner_user_id,
        work_date=work_date,
        schedule_id=schedule_id,
        note=note or None,
        visibility_level=0,
        created_by_user_id=owner_user_id,
        created_at=now,
        updated_at=now,
    )
    revived = WorkShift.deleted_at.is_not(None)
    stmt = stmt.on_conflict_do_update(
        index_elements=["owner_user_id", "work_date"],
        set_={
            "schedule_id": stmt.excluded.schedule_id,
            "note": stmt.excluded.note,
            "visibility_level": 0,
            "updated_at": now,
            "created_at": case((revived, stmt.excluded.created_at), else_=WorkShift.created_at),
            "created_by_user_id": case(
                (revived, stmt.excluded.created_by_user_id), else_=WorkShift.created_by_user_id
            ),
            "deleted_at": None,
            "deleted_by_user_id": None,
        },
    )
    session.execute(stmt)
    return session.execute(
        select(WorkShift.id).where(WorkShift.owner_user_id == owner_user_id, WorkShift.work_date == work_date)
    ).scalar_one()


def upsert_work_shift(
    session: Session,
    owner_user_id: uuid.UUID,
    work_date: date,
    shift_type_code: str,
    note: str | None = None,
) -> dict[str, Any]:
    template = get_active_template(session, owner_user_id)
    shift_type = find_shift_type_by_code(session, template.id, shift_type_code)
    if shift_type is None:
        raise ShiftTypeNotFound(code=shift_type_code)

    version = current_version(session, template.id)
    schedule = resolve_or_create_schedule(session, shift_type.id, version.id)
    work_shift_id = _write_work_shift(session, owner_user_id, work_date, schedule.id, note)
    log_audit(
        session,
        owner_user_id,
        action="WORK_SHIFT_UPSERTED",
        entity_type="work_shifts",
        entity_id=work_shift_id,
        payload={"work_date": work_date.isoformat(), "shift_type_code": shift_type_code},
    )
    return work_shift_details(session, [work_shift_id])[0]


def duplicate_dates(entries: Sequence[WorkShiftEntry]) -> list[date]:
    seen: set[date] = set()
    duplicates: list[date] = []
    for entry in entries:
        if entry.work_date in seen and entry.work_date not in duplicates:
            duplicates.append(entry.work_date)
        seen.add(entry.work_date)
    return duplicates


def _apply_entry(
    session: Session,
    owner_user_id: uuid.UUID,
    template_id: uuid.UUID,
    entry: WorkShiftEntry,
    fallback: bool,
) -> uuid.UUID:
    shift_type = find_shift_type_by_code(session, template_id, entry.shift_type_code)
    if shift_type is None:
        raise InvalidShiftType(entry.shift_type_code, entry.work_date)

    try:
        version = resolve_version_for_date(session, template_id, entry.work_date, fallback=fallback)
    except TemplateNotFound as exc:
        raise TemplateVersionNotFound(entry.work_date) from exc

    schedule = resolve_or_create_schedule(session, shift_type.id, version.id)
    return _write_work_shift(session, owner_user_id, entry.work_date, schedule.id, entry.note)


def batch_upsert_work_shifts(
    session: Session,
    owner_user_id: uuid.UUID,
    entries: Sequence[WorkShiftEntry],
) -> list[dict[str, Any]]:
    """Upsert every entry or none of them.

    Entries are applied in list order inside one unit of work; the first
    failing entry aborts and rolls back the whole batch. The returned rows
    are re-read after commit and are not guaranteed to follow request order.
    """
    if not entries:
        raise ValidationFailed("At least one work shift is required.", fields=["work_shifts"])
    max_size = batch_max_size()
    if len(entries) > max_size:
        raise BatchTooLarge(max_size)

    duplicates = duplicate_dates(entries)
    if duplicates:
        raise DuplicateDate(duplicates)

    template_id = get_active_template(session, owner_user_id).id
    fallback = bool(current_app.config.get("VERSION_FALLBACK_ENABLED", True))

    with unit_of_work(session):
        saved_ids = [_apply_entry(session, owner_user_id, template_id, entry, fallback) for entry in entries]
        log_audit(
            session,
            owner_user_id,
            action="WORK_SHIFTS_BATCH_UPSERTED",
            entity_type="work_shifts",
            entity_id=None,
            payload={"work_dates": [entry.work_date.isoformat() for entry in entries]},
        )

    current_app.logger.info("Batch upsert committed %d work shifts for user %s.", len(saved_ids), owner_user_id)
    return work_shift_details(session, saved_ids)


def _owned_work_shift(session: Session, owner_user_id: uuid.UUID, work_shift_id: uuid.UUID) -> WorkShift:
    work_shift = session.execute(
        select(WorkShift).where(
            WorkShift.id == work_shift_id,
            WorkShift.owner_user_id == owner_user_id,
            WorkShift.deleted_at.is_(None),
        )
    ).scalar_one_or_none()
    if work_shift is None:
        raise WorkShiftNotFound()
    return work_shift


def update_work_shift(
    session: Session,
    owner_user_id: uuid.UUID,
    work_shift_id: uuid.UUID,
    changes: Mapping[str, Any],
) -> dict[str, Any]:
    work_shift = _owned_work_shift(session, owner_user_id, work_shift_id)

    shift_type_code = changes.get("shift_type_code")
    if shift_type_code:
        template = get_active_template(session, owner_user_id)
        shift_type = find_shift_type_by_code(session, template.id, shift_type_code)
        if shift_type is None:
            raise ShiftTypeNotFound(code=shift_type_code)
        version = current_version(session, template.id)
        work_shift.schedule_id = resolve_or_create_schedule(session, shift_type.id, version.id).id
    if "note" in changes:
        work_shift.note = changes["note"] or None

    session.flush()
    log_audit(
        session,
        owner_user_id,
        action="WORK_SHIFT_UPDATED",
        entity_type="work_shifts",
        entity_id=work_shift.id,
        payload={key: changes[key] for key in ("shift_type_code", "note") if key in changes},
    )
    return work_shift_details(session, [work_shift.id])[0]


def delete_work_shift(session: Session, owner_user_id: uuid.UUID, work_shift_id: uuid.UUID) -> None:
    work_shift = _owned_work_shift(session, owner_user_id, work_shift_id)
    work_shift.deleted_at = now_utc()
    work_shift.deleted_by_user_id = owner_user_id
    log_audit(
        session,
        owner_user_id,
        action="WORK_SHIFT_DELETED",
        entity_type="work_shifts",
        entity_id=work_shift.id,
        payload={"work_date": work_shift.work_date.isoformat()},
    )
    session.flush()
