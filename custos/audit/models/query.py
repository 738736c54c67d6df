"""Filter and pagination models for the audit query surface."""

from datetime import datetime
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from custos.audit.models.record import AuditAction, AuditRecord, as_utc


class AuditFilter(BaseModel):
    """Conjunctive filter over audit records.

    Every field left as None matches any value. Time bounds are inclusive.
    """

    model_config = ConfigDict(frozen=True)

    entity_name: str | None = None
    entity_id: UUID | None = None
    actor_id: UUID | None = None
    company_id: UUID | None = None
    action: AuditAction | None = None
    since: datetime | None = None
    until: datetime | None = None

    @field_validator("since", "until")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # Records are stamped in UTC; a bound without tzinfo is read as UTC
        return as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_time_range(self) -> "AuditFilter":
        if self.since is not None and self.until is not None and self.since > self.until:
            raise ValueError("since must not be after until")
        return self

    def matches(self, record: AuditRecord) -> bool:
        """Check a record against every set field."""
        if self.entity_name is not None and record.entity_name != self.entity_name:
            return False
        if self.entity_id is not None and record.entity_id != self.entity_id:
            return False
        if self.actor_id is not None and record.actor_id != self.actor_id:
            return False
        if self.company_id is not None and record.company_id != self.company_id:
            return False
        if self.action is not None and record.action != self.action:
            return False
        if self.since is not None and record.timestamp < self.since:
            return False
        if self.until is not None and record.timestamp > self.until:
            return False
        return True


class PageRequest(BaseModel):
    """Offset pagination."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=50, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


class AuditPage(BaseModel):
    """One page of audit records, most recent first."""

    records: list[AuditRecord]
    total: int = Field(..., ge=0, description="Records matching the filter")
    limit: int
    offset: int

    @computed_field
    @property
    def has_more(self) -> bool:
        return self.offset + len(self.records) < self.total
