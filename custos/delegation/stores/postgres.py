"""PostgreSQL implementation of DelegationStore.

Uses asyncpg for async database access. Uniqueness and the
no-self-supervision rule are table constraints, so concurrent inserts are
arbitrated by the database rather than by a read-then-write check.
"""

from uuid import UUID

import asyncpg

from custos.db.errors import ConnectionError, NotFoundError
from custos.db.pool import PostgresPool
from custos.delegation.models import DelegationEdge, EdgeKind, InternalAccessGrant
from custos.delegation.store import DelegationStore
from custos.errors import DuplicateEdge, SelfReference
from custos.observability.logging import get_logger

logger = get_logger(__name__)

_EDGE_COLUMNS = "id, kind, company_id, source_id, target_id, created_at"
_GRANT_COLUMNS = "id, staff_id, company_id, created_at"


class PostgresDelegationStore(DelegationStore):
    """PostgreSQL implementation of DelegationStore.

    Rows are read back in insertion order using the `seq` column.
    """

    def __init__(self, pool: PostgresPool) -> None:
        self._pool = pool

    # Edge operations
    async def insert_edge(self, edge: DelegationEdge) -> DelegationEdge:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO delegation_edges (
                        id, kind, company_id, source_id, target_id, created_at
                    ) VALUES ($1, $2, $3, $4, $5, $6)
                    """,
                    edge.id,
                    edge.kind.value,
                    edge.company_id,
                    edge.source_id,
                    edge.target_id,
                    edge.created_at,
                )
                logger.debug("delegation_edge_saved", edge_id=str(edge.id))
                return edge
        except asyncpg.UniqueViolationError as e:
            raise DuplicateEdge(
                f"Edge {edge.kind.value} {edge.source_id} -> {edge.target_id} "
                f"already exists in company {edge.company_id}"
            ) from e
        except asyncpg.CheckViolationError as e:
            raise SelfReference(f"Actor {edge.source_id} cannot supervise itself") from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(
                f"Unknown company {edge.company_id} or source actor {edge.source_id}",
                cause=e,
            ) from e
        except Exception as e:
            logger.error("postgres_insert_edge_error", edge_id=str(edge.id), error=str(e))
            raise ConnectionError(f"Failed to insert delegation edge: {e}", cause=e) from e

    async def delete_edge(
        self,
        kind: EdgeKind,
        company_id: UUID,
        source_id: UUID,
        target_id: UUID,
    ) -> bool:
        try:
            async with self._pool.acquire() as conn:
                result = await conn.execute(
                    """
                    DELETE FROM delegation_edges
                    WHERE kind = $1 AND company_id = $2
                      AND source_id = $3 AND target_id = $4
                    """,
                    kind.value,
                    company_id,
                    source_id,
                    target_id,
                )
                return result.endswith(" 1")
        except Exception as e:
            logger.error("postgres_delete_edge_error", error=str(e))
            raise ConnectionError(f"Failed to delete delegation edge: {e}", cause=e) from e

    async def list_edges_from(
        self, source_id: UUID, kind: EdgeKind
    ) -> list[DelegationEdge]:
        return await self._list_edges("source_id", source_id, kind)

    async def list_edges_to(
        self, target_id: UUID, kind: EdgeKind
    ) -> list[DelegationEdge]:
        return await self._list_edges("target_id", target_id, kind)

    async def _list_edges(
        self, column: str, value: UUID, kind: EdgeKind
    ) -> list[DelegationEdge]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_EDGE_COLUMNS} FROM delegation_edges
                    WHERE {column} = $1 AND kind = $2
                    ORDER BY seq
                    """,  # noqa: S608
                    value,
                    kind.value,
                )
                return [DelegationEdge(**dict(row)) for row in rows]
        except Exception as e:
            logger.error("postgres_list_edges_error", column=column, error=str(e))
            raise ConnectionError(f"Failed to list delegation edges: {e}", cause=e) from e

    # Grant operations
    async def insert_grant(self, grant: InternalAccessGrant) -> InternalAccessGrant:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO internal_access_grants (
                        id, staff_id, company_id, created_at
                    ) VALUES ($1, $2, $3, $4)
                    """,
                    grant.id,
                    grant.staff_id,
                    grant.company_id,
                    grant.created_at,
                )
                return grant
        except asyncpg.UniqueViolationError as e:
            raise DuplicateEdge(
                f"Staff {grant.staff_id} already has a grant for "
                f"company {grant.company_id}"
            ) from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(
                f"Unknown company {grant.company_id} or staff member {grant.staff_id}",
                cause=e,
            ) from e
        except Exception as e:
            logger.error("postgres_insert_grant_error", grant_id=str(grant.id), error=str(e))
            raise ConnectionError(f"Failed to insert access grant: {e}", cause=e) from e

    async def delete_grant(self, staff_id: UUID, company_id: UUID) -> bool:
        try:
            async with self._pool.acquire() as conn:
                result = await conn.execute(
                    """
                    DELETE FROM internal_access_grants
                    WHERE staff_id = $1 AND company_id = $2
                    """,
                    staff_id,
                    company_id,
                )
                return result.endswith(" 1")
        except Exception as e:
            logger.error("postgres_delete_grant_error", error=str(e))
            raise ConnectionError(f"Failed to delete access grant: {e}", cause=e) from e

    async def list_grants(self, staff_id: UUID) -> list[InternalAccessGrant]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_GRANT_COLUMNS} FROM internal_access_grants
                    WHERE staff_id = $1
                    ORDER BY seq
                    """,  # noqa: S608
                    staff_id,
                )
                return [InternalAccessGrant(**dict(row)) for row in rows]
        except Exception as e:
            logger.error("postgres_list_grants_error", staff_id=str(staff_id), error=str(e))
            raise ConnectionError(f"Failed to list access grants: {e}", cause=e) from e

    # Cascade
    async def delete_company(self, company_id: UUID) -> int:
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    edges = await conn.execute(
                        "DELETE FROM delegation_edges WHERE company_id = $1",
                        company_id,
                    )
                    grants = await conn.execute(
                        "DELETE FROM internal_access_grants WHERE company_id = $1",
                        company_id,
                    )
                return int(edges.split()[-1]) + int(grants.split()[-1])
        except Exception as e:
            logger.error(
                "postgres_delete_company_edges_error",
                company_id=str(company_id),
                error=str(e),
            )
            raise ConnectionError(f"Failed to delete company edges: {e}", cause=e) from e
