"""PostgreSQL implementation of IdentityStore.

Uses asyncpg for async database access.
"""

from uuid import UUID

import asyncpg

from custos.db.errors import ConnectionError, NotFoundError, ValidationError
from custos.db.pool import PostgresPool
from custos.identity.models import Actor, ActorStatus, Company, EndClient, Universe
from custos.identity.store import IdentityStore
from custos.observability.logging import get_logger

logger = get_logger(__name__)

_ACTOR_COLUMNS = (
    "id, universe, role, company_id, display_name, email, status, created_at"
)


class PostgresIdentityStore(IdentityStore):
    """PostgreSQL implementation of IdentityStore.

    Company deletion relies on ON DELETE CASCADE foreign keys to remove
    the company's end-clients, company users and delegation rows.
    """

    def __init__(self, pool: PostgresPool) -> None:
        self._pool = pool

    # Actor operations
    async def save_actor(self, actor: Actor) -> UUID:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO actors (
                        id, universe, role, company_id, display_name,
                        email, status, created_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    ON CONFLICT (id) DO UPDATE SET
                        role = EXCLUDED.role,
                        display_name = EXCLUDED.display_name,
                        email = EXCLUDED.email,
                        status = EXCLUDED.status
                    """,
                    actor.id,
                    actor.universe.value,
                    actor.role.value,
                    actor.company_id,
                    actor.display_name,
                    actor.email,
                    actor.status.value,
                    actor.created_at,
                )
                logger.debug("actor_saved", actor_id=str(actor.id))
                return actor.id
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"Unknown company: {actor.company_id}", cause=e) from e
        except asyncpg.CheckViolationError as e:
            raise ValidationError(f"Invalid actor {actor.id}: {e}", cause=e) from e
        except Exception as e:
            logger.error("postgres_save_actor_error", actor_id=str(actor.id), error=str(e))
            raise ConnectionError(f"Failed to save actor: {e}", cause=e) from e

    async def get_actor(self, actor_id: UUID) -> Actor | None:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_ACTOR_COLUMNS} FROM actors WHERE id = $1",  # noqa: S608
                    actor_id,
                )
                return self._row_to_actor(row) if row else None
        except Exception as e:
            logger.error("postgres_get_actor_error", actor_id=str(actor_id), error=str(e))
            raise ConnectionError(f"Failed to get actor: {e}", cause=e) from e

    async def list_actors_by_company(self, company_id: UUID) -> list[Actor]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_ACTOR_COLUMNS} FROM actors
                    WHERE company_id = $1
                    ORDER BY created_at
                    """,  # noqa: S608
                    company_id,
                )
                return [self._row_to_actor(row) for row in rows]
        except Exception as e:
            logger.error(
                "postgres_list_actors_error", company_id=str(company_id), error=str(e)
            )
            raise ConnectionError(f"Failed to list actors: {e}", cause=e) from e

    # Company operations
    async def save_company(self, company: Company) -> UUID:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO companies (id, name, status, created_at)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (id) DO UPDATE
                        SET name = EXCLUDED.name, status = EXCLUDED.status
                    """,
                    company.id,
                    company.name,
                    company.status.value,
                    company.created_at,
                )
                return company.id
        except Exception as e:
            logger.error(
                "postgres_save_company_error", company_id=str(company.id), error=str(e)
            )
            raise ConnectionError(f"Failed to save company: {e}", cause=e) from e

    async def get_company(self, company_id: UUID) -> Company | None:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT id, name, status, created_at FROM companies WHERE id = $1",
                    company_id,
                )
                return Company(**dict(row)) if row else None
        except Exception as e:
            logger.error(
                "postgres_get_company_error", company_id=str(company_id), error=str(e)
            )
            raise ConnectionError(f"Failed to get company: {e}", cause=e) from e

    async def list_companies(self) -> list[Company]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    "SELECT id, name, status, created_at FROM companies ORDER BY created_at"
                )
                return [Company(**dict(row)) for row in rows]
        except Exception as e:
            logger.error("postgres_list_companies_error", error=str(e))
            raise ConnectionError(f"Failed to list companies: {e}", cause=e) from e

    async def delete_company(self, company_id: UUID) -> bool:
        try:
            async with self._pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM companies WHERE id = $1", company_id
                )
                return result.endswith(" 1")
        except Exception as e:
            logger.error(
                "postgres_delete_company_error", company_id=str(company_id), error=str(e)
            )
            raise ConnectionError(f"Failed to delete company: {e}", cause=e) from e

    # End-client operations
    async def save_end_client(self, end_client: EndClient) -> UUID:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO end_clients (id, company_id, name, created_at)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name
                    """,
                    end_client.id,
                    end_client.company_id,
                    end_client.name,
                    end_client.created_at,
                )
                return end_client.id
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"Unknown company: {end_client.company_id}", cause=e) from e
        except Exception as e:
            logger.error(
                "postgres_save_end_client_error",
                end_client_id=str(end_client.id),
                error=str(e),
            )
            raise ConnectionError(f"Failed to save end-client: {e}", cause=e) from e

    async def get_end_client(self, end_client_id: UUID) -> EndClient | None:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT id, company_id, name, created_at
                    FROM end_clients WHERE id = $1
                    """,
                    end_client_id,
                )
                return EndClient(**dict(row)) if row else None
        except Exception as e:
            logger.error(
                "postgres_get_end_client_error",
                end_client_id=str(end_client_id),
                error=str(e),
            )
            raise ConnectionError(f"Failed to get end-client: {e}", cause=e) from e

    async def list_end_clients(
        self, company_ids: list[UUID] | None = None
    ) -> list[EndClient]:
        try:
            async with self._pool.acquire() as conn:
                if company_ids is None:
                    rows = await conn.fetch(
                        """
                        SELECT id, company_id, name, created_at
                        FROM end_clients ORDER BY created_at
                        """
                    )
                else:
                    rows = await conn.fetch(
                        """
                        SELECT id, company_id, name, created_at
                        FROM end_clients
                        WHERE company_id = ANY($1::uuid[])
                        ORDER BY created_at
                        """,
                        list(company_ids),
                    )
                return [EndClient(**dict(row)) for row in rows]
        except Exception as e:
            logger.error("postgres_list_end_clients_error", error=str(e))
            raise ConnectionError(f"Failed to list end-clients: {e}", cause=e) from e

    @staticmethod
    def _row_to_actor(row) -> Actor:
        return Actor(
            id=row["id"],
            universe=Universe(row["universe"]),
            role=row["role"],
            company_id=row["company_id"],
            display_name=row["display_name"],
            email=row["email"],
            status=ActorStatus(row["status"]),
            created_at=row["created_at"],
        )
