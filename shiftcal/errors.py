"""Domain errors raised by the shift calendar services.

Every error carries a stable ``code`` and structured ``details`` so callers
can point at the failing input (a batch entry's date or code) without
re-deriving it. ``status_code`` is the HTTP status the API layer answers
with.
"""

from __future__ import annotations

from datetime import date
from typing import Any


class ShiftCalendarError(Exception):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    message = "Unexpected server error."

    def __init__(self, message: str | None = None, **details: Any) -> None:
        super().__init__(message or self.message)
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": str(self)}
        if self.details:
            payload["details"] = {key: _jsonable(value) for key, value in self.details.items()}
        return payload


def _jsonable(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


class NotFoundError(ShiftCalendarError):
    status_code = 404


class TemplateNotFound(NotFoundError):
    code = "TEMPLATE_NOT_FOUND"
    message = "No active shift template found."


class ShiftTypeNotFound(NotFoundError):
    code = "SHIFT_TYPE_NOT_FOUND"
    message = "Shift type not found."


class WorkShiftNotFound(NotFoundError):
    code = "WORK_SHIFT_NOT_FOUND"
    message = "Work shift not found."


class TemplateVersionNotFound(NotFoundError):
    code = "TEMPLATE_VERSION_NOT_FOUND"
    message = "No template version found."

    def __init__(self, work_date: date) -> None:
        super().__init__(date=work_date)


class PolicyViolation(ShiftCalendarError):
    status_code = 400


class ValidationFailed(PolicyViolation):
    code = "VALIDATION_ERROR"
    message = "Input validation failed."


class InvalidShiftType(PolicyViolation):
    code = "INVALID_SHIFT_TYPE"
    message = "Invalid shift type code."

    def __init__(self, shift_type_code: str, work_date: date) -> None:
        super().__init__(code=shift_type_code, date=work_date)


class DuplicateDate(PolicyViolation):
    code = "DUPLICATE_DATE"
    message = "The request contains duplicate dates."

    def __init__(self, dates: list[date]) -> None:
        super().__init__(dates=dates)


class DuplicateEffectiveDate(PolicyViolation):
    code = "DUPLICATE_EFFECTIVE_DATE"
    message = "A template version already starts on that date."

    def __init__(self, effective_from: date) -> None:
        super().__init__(date=effective_from)


class NoValidVersionForDate(PolicyViolation):
    code = "NO_VALID_VERSION_FOR_DATE"
    message = "No template version is in force on that date."

    def __init__(self, work_date: date, earliest_version_date: date) -> None:
        super().__init__(date=work_date, earliest_version_date=earliest_version_date)


class MaxShiftTypesExceeded(PolicyViolation):
    code = "MAX_SHIFT_TYPES_EXCEEDED"
    message = "A template can hold at most {limit} shift types."

    def __init__(self, limit: int) -> None:
        super().__init__(self.message.format(limit=limit), limit=limit)


class BatchTooLarge(PolicyViolation):
    code = "BATCH_TOO_LARGE"
    message = "Too many work shifts in one batch."

    def __init__(self, max_size: int) -> None:
        super().__init__(max_size=max_size)


class DuplicateCode(PolicyViolation):
    code = "DUPLICATE_CODE"
    message = "A shift type with that code already exists."


class DuplicateName(PolicyViolation):
    code = "DUPLICATE_NAME"
    message = "Template name already in use."


class Forbidden(ShiftCalendarError):
    code = "FORBIDDEN"
    status_code = 403
    message = "You do not own this resource."


class InUse(ShiftCalendarError):
    code = "IN_USE"
    status_code = 409
    message = "The shift type is referenced by work shifts."
