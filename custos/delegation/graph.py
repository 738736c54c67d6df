"""Delegation graph: who delegates visibility of which end-client to whom."""

from uuid import UUID

from custos.delegation.models import DelegationEdge, EdgeKind, InternalAccessGrant
from custos.delegation.store import DelegationStore
from custos.errors import SelfReference
from custos.observability.logging import get_logger
from custos.observability.metrics import (
    DELEGATION_EDGES_ADDED,
    DELEGATION_EDGES_REMOVED,
)

logger = get_logger(__name__)

GRANT_METRIC_KIND = "internal_access_grant"


class DelegationGraph:
    """Validated mutations and lookups over delegation edges and grants.

    DuplicateEdge and SelfReference propagate to the caller; the rejected
    operation leaves the graph unchanged. The graph does not check actor
    roles: callers decide who may be a source or a target.
    """

    def __init__(self, store: DelegationStore) -> None:
        self._store = store

    async def add_edge(
        self,
        kind: EdgeKind,
        company_id: UUID,
        source_actor_id: UUID,
        target_id: UUID,
    ) -> DelegationEdge:
        """Add a delegation edge.

        Raises:
            SelfReference: kind is supervisor-to-collaborator and source == target
            DuplicateEdge: the (company, source, target) triple exists for kind
        """
        kind = EdgeKind(kind)
        if kind == EdgeKind.SUPERVISOR_TO_COLLABORATOR and source_actor_id == target_id:
            raise SelfReference(f"Actor {source_actor_id} cannot supervise itself")

        edge = await self._store.insert_edge(
            DelegationEdge(
                kind=kind,
                company_id=company_id,
                source_id=source_actor_id,
                target_id=target_id,
            )
        )
        DELEGATION_EDGES_ADDED.labels(kind=kind.value).inc()
        logger.info(
            "delegation_edge_added",
            kind=kind.value,
            company_id=str(company_id),
            source_id=str(source_actor_id),
            target_id=str(target_id),
        )
        return edge

    async def remove_edge(
        self,
        kind: EdgeKind,
        company_id: UUID,
        source_actor_id: UUID,
        target_id: UUID,
    ) -> bool:
        """Remove an edge. Returns False when no such edge existed."""
        kind = EdgeKind(kind)
        removed = await self._store.delete_edge(kind, company_id, source_actor_id, target_id)
        if removed:
            DELEGATION_EDGES_REMOVED.labels(kind=kind.value).inc()
            logger.info(
                "delegation_edge_removed",
                kind=kind.value,
                company_id=str(company_id),
                source_id=str(source_actor_id),
                target_id=str(target_id),
            )
        return removed

    async def edges_from(self, actor_id: UUID, kind: EdgeKind) -> list[DelegationEdge]:
        return await self._store.list_edges_from(actor_id, kind)

    async def edges_to(self, target_id: UUID, kind: EdgeKind) -> list[DelegationEdge]:
        return await self._store.list_edges_to(target_id, kind)

    async def add_grant(self, staff_id: UUID, company_id: UUID) -> InternalAccessGrant:
        """Restrict a staff member to a company (in addition to existing grants).

        Raises:
            DuplicateEdge: the staff member already has a grant for the company
        """
        grant = await self._store.insert_grant(
            InternalAccessGrant(staff_id=staff_id, company_id=company_id)
        )
        DELEGATION_EDGES_ADDED.labels(kind=GRANT_METRIC_KIND).inc()
        logger.info(
            "internal_access_grant_added",
            staff_id=str(staff_id),
            company_id=str(company_id),
        )
        return grant

    async def remove_grant(self, staff_id: UUID, company_id: UUID) -> bool:
        """Remove a grant. Removing the last grant makes the staff member unrestricted."""
        removed = await self._store.delete_grant(staff_id, company_id)
        if removed:
            DELEGATION_EDGES_REMOVED.labels(kind=GRANT_METRIC_KIND).inc()
            logger.info(
                "internal_access_grant_removed",
                staff_id=str(staff_id),
                company_id=str(company_id),
            )
        return removed

    async def list_grants(self, staff_id: UUID) -> list[InternalAccessGrant]:
        return await self._store.list_grants(staff_id)

    async def remove_company(self, company_id: UUID) -> int:
        """Drop every edge and grant scoped to a deleted company."""
        removed = await self._store.delete_company(company_id)
        logger.info(
            "company_delegations_removed",
            company_id=str(company_id),
            removed=removed,
        )
        return removed
