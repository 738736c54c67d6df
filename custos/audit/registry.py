"""Entity attribution registry.

Maps each monitored entity name to the payload fields that carry the
acting user and the owning company. Entities that are not registered get
no payload-based attribution.
"""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from custos.config.models.audit import DEFAULT_ACTOR_FIELDS, AuditConfig


def _parse_uuid(value: Any) -> UUID | None:
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class EntityAttribution:
    """Attribution fields for one entity."""

    actor_fields: tuple[str, ...] = field(default_factory=lambda: tuple(DEFAULT_ACTOR_FIELDS))
    company_field: str | None = "company_id"

    def actor_id_from(self, payload: dict[str, Any] | None) -> UUID | None:
        """Return the first actor field holding a valid id."""
        if not payload:
            return None
        for name in self.actor_fields:
            actor_id = _parse_uuid(payload.get(name))
            if actor_id is not None:
                return actor_id
        return None

    def company_id_from(self, payload: dict[str, Any] | None) -> UUID | None:
        if not payload or self.company_field is None:
            return None
        return _parse_uuid(payload.get(self.company_field))


class EntityAuditRegistry:
    """Registry of monitored entities and their attribution fields."""

    def __init__(self) -> None:
        self._entities: dict[str, EntityAttribution] = {}

    def register(
        self,
        entity_name: str,
        actor_fields: list[str] | tuple[str, ...] | None = None,
        company_field: str | None = "company_id",
    ) -> EntityAttribution:
        attribution = EntityAttribution(
            actor_fields=tuple(actor_fields) if actor_fields is not None
            else tuple(DEFAULT_ACTOR_FIELDS),
            company_field=company_field,
        )
        self._entities[entity_name] = attribution
        return attribution

    def get(self, entity_name: str) -> EntityAttribution | None:
        return self._entities.get(entity_name)

    def __contains__(self, entity_name: object) -> bool:
        return entity_name in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    @classmethod
    def from_config(cls, config: AuditConfig) -> "EntityAuditRegistry":
        """Build a registry from the `[audit.entities]` table."""
        registry = cls()
        for entity_name, entity in config.entities.items():
            registry.register(
                entity_name,
                actor_fields=entity.actor_fields,
                company_field=entity.company_field,
            )
        return registry
