"""Audit trail for reminder lifecycle actions."""

import logging
from typing import Any
from uuid import UUID

from sqlmodel import Session

from reminder_service.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def emit_audit_log(
    session: Session,
    actor_id: UUID | None,
    action: str,
    entity_id: UUID | None = None,
    details: dict[str, Any] | None = None,
    entity_type: str = "reminder",
) -> AuditLog:
    """Add an immutable audit entry to the current transaction.

    Args:
        session: Database session
        actor_id: User performing the action (None for the scheduler)
        action: Action performed (e.g., "reminder.snoozed")
        entity_id: ID of the affected entity
        details: Additional context about the action
        entity_type: Type of entity affected

    Returns:
        AuditLog: The created audit log entry
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    session.add(audit_log)

    logger.debug(
        "Audit log recorded",
        extra={
            "action": action,
            "entity_id": str(entity_id) if entity_id else None,
            "actor_id": str(actor_id) if actor_id else "system",
        },
    )

    return audit_log
