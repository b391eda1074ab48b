"""Schedule rows binding a shift type to a template version."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftcal.models import ShiftTypeSchedule, WorkShift
from shiftcal.time_info import UNTIMED, ScheduleTimes


def find_schedule(session: Session, shift_type_id: uuid.UUID, template_version_id: uuid.UUID) -> ShiftTypeSchedule | None:
    return session.execute(
        select(ShiftTypeSchedule).where(
            ShiftTypeSchedule.shift_type_id == shift_type_id,
            ShiftTypeSchedule.template_version_id == template_version_id,
        )
    ).scalar_one_or_none()


def apply_times(schedule: ShiftTypeSchedule, times: ScheduleTimes) -> ShiftTypeSchedule:
    schedule.start_time = times.start
    schedule.end_time = times.end
    schedule.crosses_midnight = times.crosses_midnight
    schedule.duration_minutes = times.duration_minutes
    return schedule


def create_schedule(
    session: Session,
    shift_type_id: uuid.UUID,
    template_version_id: uuid.UUID,
    times: ScheduleTimes = UNTIMED,
) -> ShiftTypeSchedule:
    schedule = apply_times(
        ShiftTypeSchedule(shift_type_id=shift_type_id, template_version_id=template_version_id),
        times,
    )
    session.add(schedule)
    session.flush()
    return schedule


def resolve_or_create_schedule(
    session: Session,
    shift_type_id: uuid.UUID,
    template_version_id: uuid.UUID,
) -> ShiftTypeSchedule:
    """Return the schedule for the pair, creating an untimed one if missing.

    A shift type without hours for a version still needs a row so work
    shifts can reference it.
    """
    schedule = find_schedule(session, shift_type_id, template_version_id)
    if schedule is not None:
        return schedule
    return create_schedule(session, shift_type_id, template_version_id)


def schedule_in_use(session: Session, schedule_ids: list[uuid.UUID], *, include_deleted: bool = False) -> bool:
    """True when a live work shift (or any work shift with ``include_deleted``) references the schedules."""
    if not schedule_ids:
        return False
    stmt = select(WorkShift.id).where(WorkShift.schedule_id.in_(schedule_ids))
    if not include_deleted:
        stmt = stmt.where(WorkShift.deleted_at.is_(None))
    referenced = session.execute(stmt.limit(1)).scalar_one_or_none()
    return referenced is not None


def copy_schedules(
    session: Session,
    source_version_id: uuid.UUID,
    target_version_id: uuid.UUID,
    shift_type_ids: list[uuid.UUID],
) -> list[ShiftTypeSchedule]:
    if not shift_type_ids:
        return []
    source_rows = session.execute(
        select(ShiftTypeSchedule).where(
            ShiftTypeSchedule.template_version_id == source_version_id,
            ShiftTypeSchedule.shift_type_id.in_(shift_type_ids),
        )
    ).scalars().all()
    return [create_schedule(session, row.shift_type_id, target_version_id, row.times) for row in source_rows]
