"""PostgreSQL implementation of AuditStore.

Uses asyncpg for async database access. State snapshots are stored in
`json` columns, which keep the written document text as-is.
"""

import json
from typing import Any
from uuid import UUID

from custos.audit.models import AuditAction, AuditFilter, AuditRecord
from custos.audit.store import AuditStore
from custos.db.errors import ConnectionError
from custos.db.pool import PostgresPool
from custos.observability.logging import get_logger

logger = get_logger(__name__)

_RECORD_COLUMNS = (
    "id, company_id, actor_id, action, entity_name, entity_id, "
    "prior_state, new_state, created_at"
)


class PostgresAuditStore(AuditStore):
    """PostgreSQL implementation of AuditStore.

    All records are immutable once written; inserts ignore an id that is
    already present so a retried write cannot duplicate a record.
    """

    def __init__(self, pool: PostgresPool) -> None:
        """Initialize with connection pool.

        Args:
            pool: PostgreSQL connection pool
        """
        self._pool = pool

    async def save_record(self, record: AuditRecord) -> UUID:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO audit_records (
                        id, company_id, actor_id, action, entity_name,
                        entity_id, prior_state, new_state, created_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7::json, $8::json, $9)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    record.id,
                    record.company_id,
                    record.actor_id,
                    record.action.value,
                    record.entity_name,
                    record.entity_id,
                    _dump_state(record.prior_state),
                    _dump_state(record.new_state),
                    record.timestamp,
                )
                logger.debug("audit_record_saved", record_id=str(record.id))
                return record.id
        except Exception as e:
            logger.error(
                "postgres_save_audit_record_error", record_id=str(record.id), error=str(e)
            )
            raise ConnectionError(f"Failed to save audit record: {e}", cause=e) from e

    async def get_record(self, record_id: UUID) -> AuditRecord | None:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_RECORD_COLUMNS} FROM audit_records WHERE id = $1",  # noqa: S608
                    record_id,
                )
                return self._row_to_record(row) if row else None
        except Exception as e:
            logger.error(
                "postgres_get_audit_record_error", record_id=str(record_id), error=str(e)
            )
            raise ConnectionError(f"Failed to get audit record: {e}", cause=e) from e

    async def query_records(
        self,
        audit_filter: AuditFilter,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditRecord]:
        where, params = self._build_where(audit_filter)
        params.append(limit)
        limit_ref = f"${len(params)}"
        params.append(offset)
        offset_ref = f"${len(params)}"
        query = f"""
            SELECT {_RECORD_COLUMNS} FROM audit_records
            {where}
            ORDER BY created_at DESC, seq DESC
            LIMIT {limit_ref} OFFSET {offset_ref}
        """  # noqa: S608
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(query, *params)
                return [self._row_to_record(row) for row in rows]
        except Exception as e:
            logger.error("postgres_query_audit_records_error", error=str(e))
            raise ConnectionError(f"Failed to query audit records: {e}", cause=e) from e

    async def count_records(self, audit_filter: AuditFilter) -> int:
        where, params = self._build_where(audit_filter)
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetchval(
                    f"SELECT COUNT(*) FROM audit_records {where}",  # noqa: S608
                    *params,
                )
        except Exception as e:
            logger.error("postgres_count_audit_records_error", error=str(e))
            raise ConnectionError(f"Failed to count audit records: {e}", cause=e) from e

    @staticmethod
    def _build_where(audit_filter: AuditFilter) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []

        def add(clause: str, value: Any) -> None:
            params.append(value)
            clauses.append(clause.format(ref=f"${len(params)}"))

        if audit_filter.entity_name is not None:
            add("entity_name = {ref}", audit_filter.entity_name)
        if audit_filter.entity_id is not None:
            add("entity_id = {ref}", audit_filter.entity_id)
        if audit_filter.actor_id is not None:
            add("actor_id = {ref}", audit_filter.actor_id)
        if audit_filter.company_id is not None:
            add("company_id = {ref}", audit_filter.company_id)
        if audit_filter.action is not None:
            add("action = {ref}", audit_filter.action.value)
        if audit_filter.since is not None:
            add("created_at >= {ref}", audit_filter.since)
        if audit_filter.until is not None:
            add("created_at <= {ref}", audit_filter.until)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    @staticmethod
    def _row_to_record(row) -> AuditRecord:
        return AuditRecord(
            id=row["id"],
            company_id=row["company_id"],
            actor_id=row["actor_id"],
            action=AuditAction(row["action"]),
            entity_name=row["entity_name"],
            entity_id=row["entity_id"],
            prior_state=_load_state(row["prior_state"]),
            new_state=_load_state(row["new_state"]),
            timestamp=row["created_at"],
        )


def _dump_state(state: dict[str, Any] | None) -> str | None:
    return json.dumps(state) if state is not None else None


def _load_state(value: str | None) -> dict[str, Any] | None:
    return json.loads(value) if value is not None else None
