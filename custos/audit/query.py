"""Read-only query surface over the audit trail."""

from uuid import UUID

from custos.audit.models import AuditFilter, AuditPage, AuditRecord, PageRequest
from custos.audit.store import AuditStore
from custos.observability.logging import get_logger

logger = get_logger(__name__)


class AuditQuerySurface:
    """Filter and page through audit records, most recent first.

    Filters are conjunctive; any field left unset matches every record.
    """

    def __init__(self, store: AuditStore) -> None:
        self._store = store

    async def query(
        self,
        audit_filter: AuditFilter | None = None,
        page: PageRequest | None = None,
    ) -> AuditPage:
        """Return one page of matching records.

        Args:
            audit_filter: Conditions every returned record satisfies
            page: Limit and offset; defaults to the first 50 records

        Returns:
            AuditPage with the records and the total match count
        """
        audit_filter = audit_filter or AuditFilter()
        page = page or PageRequest()

        records = await self._store.query_records(
            audit_filter, limit=page.limit, offset=page.offset
        )
        total = await self._store.count_records(audit_filter)

        logger.debug(
            "audit_queried",
            filter=audit_filter.model_dump(mode="json", exclude_none=True),
            returned=len(records),
            total=total,
        )
        return AuditPage(records=records, total=total, limit=page.limit, offset=page.offset)

    async def entity_history(
        self,
        entity_name: str,
        entity_id: UUID,
        page: PageRequest | None = None,
    ) -> AuditPage:
        """All records for one entity, most recent first."""
        return await self.query(
            AuditFilter(entity_name=entity_name, entity_id=entity_id), page
        )

    async def get(self, record_id: UUID) -> AuditRecord | None:
        return await self._store.get_record(record_id)
