"""Bootstrap module for Custos setup.

Builds the full stack from configuration:
- Configures structlog
- Creates in-memory or PostgreSQL stores
- Builds the attribution registry from the `[audit.entities]` table
- Wires the identity model, delegation graph, resolver, audit engine and
  query surface

Example usage:

    from custos.bootstrap import bootstrap

    ctx = await bootstrap()
    try:
        scope = await ctx.resolver.resolve(actor_id)
        await ctx.audit.record_event(event, actor=actor_id)
    finally:
        await ctx.close()
"""

from dataclasses import dataclass
from uuid import UUID

from prometheus_client import start_http_server

from custos.access.resolver import AccessScopeResolver
from custos.audit.engine import AuditTrailEngine
from custos.audit.query import AuditQuerySurface
from custos.audit.registry import EntityAuditRegistry
from custos.audit.store import AuditStore
from custos.audit.stores import InMemoryAuditStore, PostgresAuditStore
from custos.config import get_settings
from custos.config.settings import Settings
from custos.db.errors import ConnectionError
from custos.db.pool import PostgresPool
from custos.delegation.graph import DelegationGraph
from custos.delegation.store import DelegationStore
from custos.delegation.stores import InMemoryDelegationStore, PostgresDelegationStore
from custos.identity.service import IdentityModel
from custos.identity.store import IdentityStore
from custos.identity.stores import InMemoryIdentityStore, PostgresIdentityStore
from custos.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass
class CustosContext:
    """Wired components returned from bootstrap."""

    settings: Settings
    identity: IdentityModel
    graph: DelegationGraph
    resolver: AccessScopeResolver
    audit: AuditTrailEngine
    audit_query: AuditQuerySurface
    pool: PostgresPool | None = None

    async def delete_company(self, company_id: UUID) -> bool:
        """Delete a company with its delegation edges, grants and end-clients.

        Returns:
            True if the company existed
        """
        removed = await self.graph.remove_company(company_id)
        deleted = await self.identity.delete_company(company_id)
        logger.info(
            "company_cascade_deleted",
            company_id=str(company_id),
            delegation_rows_removed=removed,
            deleted=deleted,
        )
        return deleted

    async def close(self) -> None:
        """Flush pending audit records and release the connection pool."""
        await self.audit.flush()
        if self.audit.pending_count:
            logger.warning("audit_pending_on_close", pending=self.audit.pending_count)
        if self.pool is not None:
            await self.pool.close()


async def bootstrap(
    settings: Settings | None = None,
    serve_metrics: bool = False,
) -> CustosContext:
    """Bootstrap a fully-configured Custos context.

    Args:
        settings: Settings to use (default: get_settings())
        serve_metrics: Start the Prometheus HTTP exporter when metrics are
            enabled

    Returns:
        CustosContext with all components wired

    Raises:
        ConnectionError: PostgreSQL is unreachable or not migrated
    """
    settings = settings or get_settings()

    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_pii=log_config.redact_pii,
    )

    pool: PostgresPool | None = None
    identity_store: IdentityStore
    delegation_store: DelegationStore
    audit_store: AuditStore

    if settings.storage.backend == "postgres":
        pool = PostgresPool.from_config(settings.storage.postgres)
        await pool.connect()
        missing = await pool.missing_tables()
        if missing:
            await pool.close()
            raise ConnectionError(
                f"Custos schema is not migrated (missing: {', '.join(sorted(missing))}); "
                "run `alembic upgrade head`"
            )
        identity_store = PostgresIdentityStore(pool)
        delegation_store = PostgresDelegationStore(pool)
        audit_store = PostgresAuditStore(pool)
    else:
        identity_store = InMemoryIdentityStore()
        delegation_store = InMemoryDelegationStore()
        audit_store = InMemoryAuditStore()

    identity = IdentityModel(identity_store)
    graph = DelegationGraph(delegation_store)
    resolver = AccessScopeResolver(
        identity,
        graph,
        supervisor_hop_limit=settings.access.supervisor_hop_limit,
    )

    audit_config = settings.audit
    audit = AuditTrailEngine(
        audit_store,
        identity,
        EntityAuditRegistry.from_config(audit_config),
        enabled=audit_config.enabled,
        max_write_attempts=audit_config.max_write_attempts,
        pending_buffer_size=audit_config.pending_buffer_size,
        max_flush_attempts=audit_config.max_flush_attempts,
    )

    metrics_config = settings.observability.metrics
    if serve_metrics and metrics_config.enabled:
        start_http_server(metrics_config.port)
        logger.info("metrics_server_started", port=metrics_config.port)

    logger.info(
        "custos_bootstrapped",
        backend=settings.storage.backend,
        monitored_entities=len(audit.registry),
        supervisor_hop_limit=settings.access.supervisor_hop_limit,
    )

    return CustosContext(
        settings=settings,
        identity=identity,
        graph=graph,
        resolver=resolver,
        audit=audit,
        audit_query=AuditQuerySurface(audit_store),
        pool=pool,
    )
