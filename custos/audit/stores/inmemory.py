"""In-memory implementation of AuditStore."""

from uuid import UUID

from custos.audit.models import AuditFilter, AuditRecord
from custos.audit.store import AuditStore


class InMemoryAuditStore(AuditStore):
    """In-memory implementation of AuditStore for testing and development.

    Uses simple dict storage with linear scan for queries.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._records: dict[UUID, AuditRecord] = {}

    async def save_record(self, record: AuditRecord) -> UUID:
        self._records.setdefault(record.id, record)
        return record.id

    async def get_record(self, record_id: UUID) -> AuditRecord | None:
        return self._records.get(record_id)

    async def query_records(
        self,
        audit_filter: AuditFilter,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditRecord]:
        # Reversed insertion order first so equal timestamps list newest first
        results = [r for r in reversed(self._records.values()) if audit_filter.matches(r)]
        results.sort(key=lambda r: r.timestamp, reverse=True)
        return results[offset:offset + limit]

    async def count_records(self, audit_filter: AuditFilter) -> int:
        return sum(1 for r in self._records.values() if audit_filter.matches(r))
