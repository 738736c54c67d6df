"""MutationEvent model: what the CRUD layer emits on every mutation."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from custos.audit.models.record import AuditAction


class MutationEvent(BaseModel):
    """A create, update or delete of a monitored entity."""

    model_config = ConfigDict(frozen=True)

    entity_name: str = Field(..., min_length=1, description="Namespace-qualified entity")
    entity_id: UUID = Field(..., description="Mutated entity")
    action: AuditAction = Field(..., description="Mutation kind")
    prior_state: dict[str, Any] | None = Field(default=None, description="State before")
    new_state: dict[str, Any] | None = Field(default=None, description="State after")
