"""WTForms form classes for the JSON API."""

from __future__ import annotations

from typing import Any, Mapping

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import DateField, IntegerField, PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, Regexp, ValidationError

from shiftcal.errors import ValidationFailed


TIME_OF_DAY_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9](:[0-5][0-9])?$"
TIME_OF_DAY_MESSAGE = "Use HH:MM or HH:MM:SS."
NON_SCALAR_MESSAGE = "Must be a string or a number."


def present_not_blank(_form: FlaskForm, field) -> None:
    if field.raw_data and not str(field.raw_data[0]).strip():
        raise ValidationError("This field cannot be blank.")


def _strip(value: str | None) -> str | None:
    return value.strip() if value else value


class ApiForm(FlaskForm):
    class Meta:
        csrf = False

    @classmethod
    def from_json(cls, payload: Mapping[str, Any], prefix: str = ""):
        """Bind a flat JSON object; ``null`` values count as omitted.

        Objects, arrays and booleans are never valid field values and raise
        ``ValidationFailed`` instead of being read as missing.
        """
        rejected = {
            f"{prefix}{key}": [NON_SCALAR_MESSAGE]
            for key, value in payload.items()
            if isinstance(value, (dict, list, bool))
        }
        if rejected:
            raise ValidationFailed(fields=rejected)
        formdata = MultiDict({key: str(value) for key, value in payload.items() if value is not None})
        return cls(formdata=formdata)

    def error_fields(self, prefix: str = "") -> dict[str, list[str]]:
        return {f"{prefix}{name}": list(errors) for name, errors in self.errors.items()}


class LoginForm(ApiForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)], filters=[_strip])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=8, max=255)])


class TemplateRenameForm(ApiForm):
    name = StringField("Template name", validators=[DataRequired(), Length(max=100)], filters=[_strip])


class TemplateVersionForm(ApiForm):
    effective_from = DateField("Effective from", validators=[DataRequired()])


class ShiftTypeCreateForm(ApiForm):
    code = StringField("Code", validators=[DataRequired(), Length(max=10)], filters=[_strip])
    name = StringField("Name", validators=[DataRequired(), Length(max=50)], filters=[_strip])
    color = IntegerField("Color", validators=[Optional(), NumberRange(min=0, max=0xFFFFFFFF)])
    start_time = StringField("Start", validators=[Optional(), Regexp(TIME_OF_DAY_PATTERN, message=TIME_OF_DAY_MESSAGE)])
    end_time = StringField("End", validators=[Optional(), Regexp(TIME_OF_DAY_PATTERN, message=TIME_OF_DAY_MESSAGE)])
    sort_order = IntegerField("Sort order", validators=[Optional(), NumberRange(min=0)])


class ShiftTypeUpdateForm(ShiftTypeCreateForm):
    code = StringField("Code", validators=[present_not_blank, Length(max=10)], filters=[_strip])
    name = StringField("Name", validators=[present_not_blank, Length(max=50)], filters=[_strip])


class WorkShiftForm(ApiForm):
    work_date = DateField("Work date", validators=[DataRequired()])
    shift_type_code = StringField("Shift type", validators=[DataRequired(), Length(max=10)], filters=[_strip])
    note = StringField("Note", validators=[Optional(), Length(max=1000)])


class WorkShiftUpdateForm(ApiForm):
    shift_type_code = StringField("Shift type", validators=[present_not_blank, Length(max=10)], filters=[_strip])
    note = StringField("Note", validators=[Optional(), Length(max=1000)])


class DateRangeForm(ApiForm):
    start_date = DateField("Start date", validators=[DataRequired()])
    end_date = DateField("End date", validators=[DataRequired()])


class DayForm(ApiForm):
    date = DateField("Date", validators=[DataRequired()])
