"""AuditStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from custos.audit.models import AuditFilter, AuditRecord


class AuditStore(ABC):
    """Abstract interface for audit storage.

    Append-only: there is deliberately no update or delete operation.
    Saving the same record id twice must leave a single record.
    """

    @abstractmethod
    async def save_record(self, record: AuditRecord) -> UUID:
        """Append an audit record."""
        pass

    @abstractmethod
    async def get_record(self, record_id: UUID) -> AuditRecord | None:
        """Get an audit record by ID."""
        pass

    @abstractmethod
    async def query_records(
        self,
        audit_filter: AuditFilter,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """List matching records, most recent first."""
        pass

    @abstractmethod
    async def count_records(self, audit_filter: AuditFilter) -> int:
        """Count matching records."""
        pass
