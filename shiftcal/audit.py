"""Audit logging helper."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from shiftcal.models import AuditLog


def log_audit(
    session: Session,
    actor_user_id: uuid.UUID | None,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | None,
    payload: dict[str, Any] | None = None,
) -> None:
    session.add(
        AuditLog(
            actor_user_id=actor_user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            payload_json=payload or {},
        )
    )
