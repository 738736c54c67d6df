"""Audit trail configuration models."""

from pydantic import BaseModel, Field

DEFAULT_ACTOR_FIELDS: list[str] = ["responsible_user_id", "user_id", "created_by_id"]


class EntityAttributionConfig(BaseModel):
    """Which payload fields carry the actor and company for one entity."""

    actor_fields: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ACTOR_FIELDS),
        description="Actor id fields, in priority order",
    )
    company_field: str | None = Field(
        default="company_id",
        description="Company id field, or None if the entity has none",
    )


class AuditConfig(BaseModel):
    """Audit trail engine configuration."""

    enabled: bool = Field(default=True, description="Record audit trail entries")
    max_write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Inline persistence attempts before a record is buffered",
    )
    pending_buffer_size: int = Field(
        default=1000,
        ge=0,
        description="Records kept for later retry; oldest are dropped on overflow",
    )
    max_flush_attempts: int = Field(
        default=5,
        ge=1,
        description="Flush attempts per buffered record before it is dropped",
    )
    entities: dict[str, EntityAttributionConfig] = Field(
        default_factory=dict,
        description="Monitored entity name -> attribution fields",
    )
