"""Delegation domain models."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class EdgeKind(str, Enum):
    """Shape of a delegation edge.

    - SUPERVISOR_TO_END_CLIENT: supervisor may act on the end-client
    - COLLABORATOR_TO_END_CLIENT: collaborator may act on the end-client
    - SUPERVISOR_TO_COLLABORATOR: supervisor oversees the collaborator's
      work (hierarchy, not client visibility)
    """

    SUPERVISOR_TO_END_CLIENT = "supervisor_to_end_client"
    COLLABORATOR_TO_END_CLIENT = "collaborator_to_end_client"
    SUPERVISOR_TO_COLLABORATOR = "supervisor_to_collaborator"


class DelegationEdge(BaseModel):
    """Directed visibility grant, scoped to one company."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    kind: EdgeKind = Field(..., description="Edge shape")
    company_id: UUID = Field(..., description="Company the edge is scoped to")
    source_id: UUID = Field(..., description="Granting side (supervisor or collaborator)")
    target_id: UUID = Field(..., description="End-client or supervised collaborator")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")

    @property
    def key(self) -> tuple[EdgeKind, UUID, UUID, UUID]:
        """Uniqueness key: no two edges share it."""
        return (self.kind, self.company_id, self.source_id, self.target_id)


class InternalAccessGrant(BaseModel):
    """Restricts an internal staff member to a company.

    A staff member with no grants at all sees every company.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    staff_id: UUID = Field(..., description="Internal staff member")
    company_id: UUID = Field(..., description="Company made visible")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
