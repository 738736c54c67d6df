"""asyncpg pool shared by the identity, delegation and audit stores."""

import os
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

import asyncpg

from custos.config.models.storage import PostgresConfig
from custos.db.errors import ConnectionError
from custos.observability.logging import get_logger

logger = get_logger(__name__)

CUSTOS_TABLES = (
    "companies",
    "end_clients",
    "actors",
    "delegation_edges",
    "internal_access_grants",
    "audit_records",
)


def resolve_dsn(dsn: str | None = None) -> str:
    """Pick the connection string.

    Order: explicit value, CUSTOS_DATABASE_URL, DATABASE_URL, then a URL
    assembled from the POSTGRES_* variables.
    """
    for candidate in (dsn, os.environ.get("CUSTOS_DATABASE_URL"), os.environ.get("DATABASE_URL")):
        if candidate:
            return candidate

    user = os.environ.get("POSTGRES_USER", "custos")
    password = os.environ.get("POSTGRES_PASSWORD", "custos")
    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    database = os.environ.get("POSTGRES_DB", "custos")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


class PostgresPool:
    """Lazily opened asyncpg pool.

    Example:
        pool = PostgresPool.from_config(settings.storage.postgres)
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT count(*) FROM audit_records")
        await pool.close()
    """

    def __init__(
        self,
        dsn: str | None = None,
        min_size: int = 5,
        max_size: int = 20,
        max_inactive_connection_lifetime: float = 300.0,
        command_timeout: float = 60.0,
    ) -> None:
        self._dsn = resolve_dsn(dsn)
        self._pool_kwargs = {
            "min_size": min_size,
            "max_size": max_size,
            "max_inactive_connection_lifetime": max_inactive_connection_lifetime,
            "command_timeout": command_timeout,
        }
        self._pool: asyncpg.Pool | None = None

    @classmethod
    def from_config(cls, config: PostgresConfig) -> "PostgresPool":
        return cls(
            dsn=config.connection_url,
            min_size=config.min_pool_size,
            max_size=config.max_pool_size,
            max_inactive_connection_lifetime=config.max_inactive_connection_lifetime,
            command_timeout=config.command_timeout,
        )

    @property
    def dsn(self) -> str:
        return self._dsn

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def size(self) -> int:
        return self._pool.get_size() if self._pool is not None else 0

    async def connect(self) -> None:
        """Open the pool. Calling it again is a no-op.

        Raises:
            ConnectionError: If PostgreSQL cannot be reached.
        """
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(dsn=self._dsn, **self._pool_kwargs)
        except Exception as e:
            logger.error("postgres_pool_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e
        logger.info(
            "postgres_pool_connected",
            min_size=self._pool_kwargs["min_size"],
            max_size=self._pool_kwargs["max_size"],
        )

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("postgres_pool_closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection, opening the pool on first use.

        Integrity violations pass through untouched so each store can map
        them to its own errors. Any other PostgreSQL error becomes a
        ConnectionError.
        """
        if self._pool is None:
            await self.connect()

        try:
            async with self._pool.acquire() as connection:
                yield connection
        except asyncpg.IntegrityConstraintViolationError:
            raise
        except asyncpg.PostgresError as e:
            logger.error("postgres_query_failed", error=str(e))
            raise ConnectionError(f"PostgreSQL error: {e}", cause=e) from e

    async def health_check(self) -> bool:
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
        except Exception as e:
            logger.warning("postgres_health_check_failed", error=str(e))
            return False
        return True

    async def missing_tables(self, tables: Iterable[str] = CUSTOS_TABLES) -> set[str]:
        """Return the tables that do not exist yet in the public schema."""
        async with self.acquire() as conn:
            rows = await conn.fetch(
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = 'public'"
            )
        present = {row["table_name"] for row in rows}
        return set(tables) - present
