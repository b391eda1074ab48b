"""JSON API for templates, shift types and work shifts."""

from __future__ import annotations

import uuid
from typing import Any

from flask import Blueprint, current_app, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from shiftcal.errors import BatchTooLarge, ShiftCalendarError, ValidationFailed
from shiftcal.extensions import db
from shiftcal.forms import (
    ApiForm,
    DateRangeForm,
    DayForm,
    ShiftTypeCreateForm,
    ShiftTypeUpdateForm,
    TemplateRenameForm,
    TemplateVersionForm,
    WorkShiftForm,
    WorkShiftUpdateForm,
)
from shiftcal.shift_types import create_shift_type, delete_shift_type, list_shift_types, update_shift_type
from shiftcal.templates import create_template_version, get_current_template, rename_template, version_summary
from shiftcal.transaction import unit_of_work
from shiftcal.work_shifts import (
    WorkShiftEntry,
    batch_max_size,
    batch_upsert_work_shifts,
    delete_work_shift,
    get_day,
    list_work_shifts,
    update_work_shift,
    upsert_work_shift,
)


bp = Blueprint("api", __name__, url_prefix="/api/v1")


def _ok(data: Any, status: int = 200):
    return {"success": True, "data": data}, status


def _owner_id() -> uuid.UUID:
    return uuid.UUID(current_user.get_id())


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object.", fields=["body"])
    return payload


def _validated(form: ApiForm) -> ApiForm:
    if not form.validate():
        raise ValidationFailed(fields=form.error_fields())
    return form


@bp.errorhandler(ShiftCalendarError)
def handle_domain_error(error: ShiftCalendarError):
    db.session.rollback()
    current_app.logger.info("Request to %s rejected with %s.", request.path, error.code)
    return {"success": False, "error": error.to_dict()}, error.status_code


@bp.errorhandler(SQLAlchemyError)
def handle_database_error(error: SQLAlchemyError):
    db.session.rollback()
    current_app.logger.exception("Database error while handling %s %s.", request.method, request.path)
    return {
        "success": False,
        "error": {"code": "INTERNAL_SERVER_ERROR", "message": "Unexpected server error."},
    }, 500


@bp.get("/shift-templates/current")
@login_required
def template_current():
    return _ok(get_current_template(db.session, _owner_id()))


@bp.put("/shift-templates/current")
@login_required
def template_rename():
    form = _validated(TemplateRenameForm.from_json(_json_body()))
    with unit_of_work() as session:
        rename_template(session, _owner_id(), form.name.data)
        data = get_current_template(session, _owner_id())
    return _ok(data)


@bp.post("/shift-templates/current/versions")
@login_required
def template_version_create():
    form = _validated(TemplateVersionForm.from_json(_json_body()))
    with unit_of_work() as session:
        version = create_template_version(session, _owner_id(), form.effective_from.data)
        data = version_summary(version)
    return _ok(data, 201)


@bp.get("/shift-types")
@login_required
def shift_types_list():
    return _ok(list_shift_types(db.session, _owner_id()))


@bp.post("/shift-types")
@login_required
def shift_types_create():
    form = _validated(ShiftTypeCreateForm.from_json(_json_body()))
    with unit_of_work() as session:
        data = create_shift_type(
            session,
            _owner_id(),
            code=form.code.data,
            name=form.name.data,
            color=form.color.data,
            start_time=form.start_time.data or None,
            end_time=form.end_time.data or None,
            sort_order=form.sort_order.data,
        )
    return _ok(data, 201)


@bp.put("/shift-types/<uuid:shift_type_id>")
@login_required
def shift_types_update(shift_type_id: uuid.UUID):
    payload = _json_body()
    form = _validated(ShiftTypeUpdateForm.from_json(payload))

    changes: dict[str, Any] = {}
    for key in ("code", "name", "sort_order"):
        if payload.get(key) is not None:
            changes[key] = form[key].data
    if "color" in payload:
        changes["color"] = form.color.data
    for key in ("start_time", "end_time"):
        if key in payload:
            changes[key] = form[key].data or None

    with unit_of_work() as session:
        data = update_shift_type(session, _owner_id(), shift_type_id, changes)
    return _ok(data)


@bp.delete("/shift-types/<uuid:shift_type_id>")
@login_required
def shift_types_delete(shift_type_id: uuid.UUID):
    with unit_of_work() as session:
        data = delete_shift_type(session, _owner_id(), shift_type_id)
    return _ok(data)


@bp.get("/work-shifts")
@login_required
def work_shifts_list():
    form = _validated(DateRangeForm.from_json(request.args.to_dict()))
    data = list_work_shifts(db.session, _owner_id(), form.start_date.data, form.end_date.data)
    return _ok({"work_shifts": data})


@bp.get("/calendar/day")
@login_required
def calendar_day():
    form = _validated(DayForm.from_json(request.args.to_dict()))
    return _ok(get_day(db.session, _owner_id(), form.date.data))


@bp.post("/work-shifts")
@login_required
def work_shifts_upsert():
    form = _validated(WorkShiftForm.from_json(_json_body()))
    with unit_of_work() as session:
        data = upsert_work_shift(
            session,
            _owner_id(),
            form.work_date.data,
            form.shift_type_code.data,
            form.note.data or None,
        )
    return _ok(data)


def _batch_entries(items: Any) -> list[WorkShiftEntry]:
    if not isinstance(items, list) or not items:
        raise ValidationFailed("work_shifts must be a non-empty list.", fields=["work_shifts"])
    max_size = batch_max_size()
    if len(items) > max_size:
        raise BatchTooLarge(max_size)

    entries: list[WorkShiftEntry] = []
    errors: dict[str, list[str]] = {}
    for index, item in enumerate(items):
        prefix = f"work_shifts[{index}]."
        if not isinstance(item, dict):
            errors[f"work_shifts[{index}]"] = ["Each entry must be an object."]
            continue
        try:
            form = WorkShiftForm.from_json(item, prefix)
        except ValidationFailed as exc:
            errors.update(exc.details["fields"])
            continue
        if not form.validate():
            errors.update(form.error_fields(prefix))
            continue
        entries.append(WorkShiftEntry(form.work_date.data, form.shift_type_code.data, form.note.data or None))
    if errors:
        raise ValidationFailed(fields=errors)
    return entries


@bp.post("/work-shifts/batch")
@login_required
def work_shifts_batch():
    entries = _batch_entries(_json_body().get("work_shifts"))
    data = batch_upsert_work_shifts(db.session, _owner_id(), entries)
    return _ok({"work_shifts": data, "count": len(data)})


@bp.put("/work-shifts/<uuid:work_shift_id>")
@login_required
def work_shifts_update(work_shift_id: uuid.UUID):
    payload = _json_body()
    form = _validated(WorkShiftUpdateForm.from_json(payload))

    changes: dict[str, Any] = {}
    if payload.get("shift_type_code") is not None:
        changes["shift_type_code"] = form.shift_type_code.data
    if "note" in payload:
        changes["note"] = form.note.data or None

    with unit_of_work() as session:
        data = update_work_shift(session, _owner_id(), work_shift_id, changes)
    return _ok(data)


@bp.delete("/work-shifts/<uuid:work_shift_id>")
@login_required
def work_shifts_delete(work_shift_id: uuid.UUID):
    with unit_of_work() as session:
        delete_work_shift(session, _owner_id(), work_shift_id)
    return _ok({"work_shift_id": str(work_shift_id)})
