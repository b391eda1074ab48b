"""Database models."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from typing import Any

from flask_login import UserMixin
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    Uuid,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftcal.extensions import db
from shiftcal.time_info import ScheduleTimes, schedule_times


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)

    def get_id(self) -> str:
        return str(self.id)


class ShiftTemplate(db.Model):
    __tablename__ = "shift_templates"
    __table_args__ = (
        Index(
            "uq_shift_templates_owner_live",
            "owner_user_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    versions: Mapped[list["ShiftTemplateVersion"]] = relationship(back_populates="template")
    shift_types: Mapped[list["ShiftType"]] = relationship(back_populates="template")


class ShiftTemplateVersion(db.Model):
    __tablename__ = "shift_template_versions"
    __table_args__ = (
        UniqueConstraint("template_id", "version_no", name="uq_shift_template_versions_template_no"),
        UniqueConstraint("template_id", "effective_from", name="uq_shift_template_versions_template_from"),
        Index("ix_shift_template_versions_template_from", "template_id", "effective_from"),
        CheckConstraint("version_no >= 1", name="ck_shift_template_versions_version_no"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    template_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shift_templates.id", ondelete="CASCADE"), nullable=False
    )
    version_no: Mapped[int] = mapped_column(Integer, nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)

    template: Mapped[ShiftTemplate] = relationship(back_populates="versions")
    schedules: Mapped[list["ShiftTypeSchedule"]] = relationship(
        back_populates="version", cascade="all, delete-orphan"
    )


class ShiftType(db.Model):
    __tablename__ = "shift_types"
    __table_args__ = (Index("ix_shift_types_template_code", "template_id", "code"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    template_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shift_templates.id", ondelete="CASCADE"), nullable=False
    )
    code: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    # Packed ARGB, e.g. 0xFFF5A623.
    color: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    template: Mapped[ShiftTemplate] = relationship(back_populates="shift_types")
    schedules: Mapped[list["ShiftTypeSchedule"]] = relationship(back_populates="shift_type")


class ShiftTypeSchedule(db.Model):
    __tablename__ = "shift_type_schedules"
    __table_args__ = (
        UniqueConstraint("template_version_id", "shift_type_id", name="uq_shift_type_schedules_version_type"),
        Index("ix_shift_type_schedules_shift_type", "shift_type_id"),
        CheckConstraint(
            "(start_time IS NULL AND end_time IS NULL) OR (start_time IS NOT NULL AND end_time IS NOT NULL)",
            name="ck_shift_type_schedules_time_pair",
        ),
        CheckConstraint("duration_minutes >= 0", name="ck_shift_type_schedules_duration"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    shift_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shift_types.id", ondelete="RESTRICT"), nullable=False
    )
    template_version_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shift_template_versions.id", ondelete="CASCADE"), nullable=False
    )
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    crosses_midnight: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)

    shift_type: Mapped[ShiftType] = relationship(back_populates="schedules")
    version: Mapped[ShiftTemplateVersion] = relationship(back_populates="schedules")

    @property
    def times(self) -> ScheduleTimes:
        return schedule_times(self.start_time, self.end_time)


class WorkShift(db.Model):
    __tablename__ = "work_shifts"
    __table_args__ = (
        UniqueConstraint("owner_user_id", "work_date", name="uq_work_shifts_owner_date"),
        Index("ix_work_shifts_schedule", "schedule_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shift_type_schedules.id", ondelete="RESTRICT"), nullable=False
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    visibility_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    schedule: Mapped[ShiftTypeSchedule] = relationship()


class AuditLog(db.Model):
    __tablename__ = "audit_log"
    __table_args__ = (Index("ix_audit_log_actor_ts", "actor_user_id", "ts"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String(128), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    payload_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)
