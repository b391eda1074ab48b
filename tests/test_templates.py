from __future__ import annotations

from datetime import time, timedelta

import pytest
from sqlalchemy import func, select

from shiftcal.errors import DuplicateEffectiveDate, TemplateNotFound
from shiftcal.extensions import db
from shiftcal.models import AuditLog, ShiftTemplate, ShiftTemplateVersion, ShiftType, ShiftTypeSchedule
from shiftcal.schedules import find_schedule
from shiftcal.shift_types import find_shift_type_by_code, update_shift_type
from shiftcal.templates import (
    DEFAULT_TEMPLATE_NAME,
    app_today,
    create_template_version,
    ensure_default_template,
    get_active_template,
    get_current_template,
    rename_template,
)


def test_new_user_gets_default_template(app, owner_id):
    template = get_active_template(db.session, owner_id)
    versions = db.session.execute(
        select(ShiftTemplateVersion).where(ShiftTemplateVersion.template_id == template.id)
    ).scalars().all()
    shift_types = db.session.execute(
        select(ShiftType).where(ShiftType.template_id == template.id).order_by(ShiftType.sort_order)
    ).scalars().all()

    assert template.name == DEFAULT_TEMPLATE_NAME
    assert [version.version_no for version in versions] == [1]
    assert versions[0].effective_from == app_today()
    assert [shift_type.code for shift_type in shift_types] == ["D", "E", "N", "OFF"]
    assert [shift_type.sort_order for shift_type in shift_types] == [1, 2, 3, 4]

    night = find_schedule(db.session, shift_types[2].id, versions[0].id)
    assert night.start_time == time(22, 30)
    assert night.end_time == time(7, 0)
    assert night.crosses_midnight is True
    assert night.duration_minutes == 510

    off = find_schedule(db.session, shift_types[3].id, versions[0].id)
    assert off.start_time is None
    assert off.end_time is None
    assert off.duration_minutes == 0


def test_ensure_default_template_is_idempotent(app, owner_id):
    existing = get_active_template(db.session, owner_id)

    again = ensure_default_template(db.session, owner_id)
    db.session.commit()

    live_count = db.session.execute(
        select(func.count(ShiftTemplate.id)).where(
            ShiftTemplate.owner_user_id == owner_id,
            ShiftTemplate.deleted_at.is_(None),
        )
    ).scalar_one()
    assert again.id == existing.id
    assert live_count == 1


def test_current_template_reports_latest_version(app, owner_id):
    future = app_today() + timedelta(days=14)
    create_template_version(db.session, owner_id, future)
    db.session.commit()

    data = get_current_template(db.session, owner_id)

    assert data["template_name"] == DEFAULT_TEMPLATE_NAME
    assert data["current_version"]["version_no"] == 2
    assert data["current_version"]["effective_from"] == future.isoformat()


def test_rename_template_writes_audit_row(app, owner_id):
    rename_template(db.session, owner_id, "Ward 3 rotation")
    db.session.commit()

    assert get_active_template(db.session, owner_id).name == "Ward 3 rotation"
    audit = db.session.execute(
        select(AuditLog).where(AuditLog.action == "SHIFT_TEMPLATE_RENAMED")
    ).scalar_one()
    assert audit.payload_json == {"before": DEFAULT_TEMPLATE_NAME, "after": "Ward 3 rotation"}


def test_duplicate_effective_date_is_rejected(app, owner_id):
    with pytest.raises(DuplicateEffectiveDate):
        create_template_version(db.session, owner_id, app_today())


def test_new_version_carries_schedules_forward(app, owner_id):
    template = get_active_template(db.session, owner_id)
    day_type = find_shift_type_by_code(db.session, template.id, "D")
    update_shift_type(db.session, owner_id, day_type.id, {"start_time": "07:00", "end_time": "15:30"})
    db.session.commit()

    version = create_template_version(db.session, owner_id, app_today() + timedelta(days=3))
    db.session.commit()

    copied = db.session.execute(
        select(ShiftTypeSchedule).where(ShiftTypeSchedule.template_version_id == version.id)
    ).scalars().all()
    assert len(copied) == 4
    day_schedule = find_schedule(db.session, day_type.id, version.id)
    assert day_schedule.start_time == time(7, 0)
    assert day_schedule.end_time == time(15, 30)
    assert day_schedule.duration_minutes == 510


def test_owner_without_template_is_not_found(app, owner_id):
    template = get_active_template(db.session, owner_id)
    template.deleted_at = template.created_at
    db.session.commit()

    with pytest.raises(TemplateNotFound):
        get_active_template(db.session, owner_id)
    with pytest.raises(TemplateNotFound):
        get_current_template(db.session, owner_id)
