"""AuditRecord model for audit domain."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a datetime without tzinfo; aware values are returned as-is."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


class AuditAction(str, Enum):
    """Kind of mutation an audit record captures."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class AuditRecord(BaseModel):
    """Immutable audit record of one mutation.

    Written exactly once by the audit trail engine and never updated or
    deleted afterwards. Retention is handled outside this library.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    company_id: UUID | None = Field(default=None, description="Company the mutation belongs to")
    actor_id: UUID | None = Field(default=None, description="Actor who performed it")
    action: AuditAction = Field(..., description="Mutation kind")
    entity_name: str = Field(
        ..., min_length=1, description="Namespace-qualified entity, e.g. tasks.task"
    )
    entity_id: UUID = Field(..., description="Mutated entity")
    prior_state: dict[str, Any] | None = Field(
        default=None, description="State before the mutation (absent for created)"
    )
    new_state: dict[str, Any] | None = Field(
        default=None, description="State after the mutation (absent for deleted)"
    )
    timestamp: datetime = Field(default_factory=utc_now, description="Mutation time")

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return as_utc(value)
