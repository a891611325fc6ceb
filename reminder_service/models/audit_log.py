"""AuditLog entity model for reminder lifecycle records."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Column, Field, SQLModel

from reminder_service.clock import utc_now


class AuditLog(SQLModel, table=True):
    """Audit log database model for immutable activity records."""

    __tablename__ = "audit_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    actor_id: UUID | None = Field(default=None, index=True)
    action: str = Field(max_length=50, index=True)
    entity_type: str = Field(max_length=50, index=True)
    entity_id: UUID | None = Field(default=None, index=True)
    details: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql")),
    )
    timestamp: datetime = Field(default_factory=utc_now, index=True)
