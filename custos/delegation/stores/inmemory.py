"""In-memory implementation of DelegationStore."""

import threading
from uuid import UUID

from custos.delegation.models import DelegationEdge, EdgeKind, InternalAccessGrant
from custos.delegation.store import DelegationStore
from custos.errors import DuplicateEdge, SelfReference


class InMemoryDelegationStore(DelegationStore):
    """In-memory implementation of DelegationStore for testing and development.

    Edges and grants live in insertion-ordered dicts keyed by their
    uniqueness tuple. A lock makes validate-then-insert atomic across
    threads; readers copy under the same lock and may see a stale snapshot.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._edges: dict[tuple[EdgeKind, UUID, UUID, UUID], DelegationEdge] = {}
        self._grants: dict[tuple[UUID, UUID], InternalAccessGrant] = {}
        self._lock = threading.Lock()

    # Edge operations
    async def insert_edge(self, edge: DelegationEdge) -> DelegationEdge:
        if (
            edge.kind == EdgeKind.SUPERVISOR_TO_COLLABORATOR
            and edge.source_id == edge.target_id
        ):
            raise SelfReference(f"Actor {edge.source_id} cannot supervise itself")

        with self._lock:
            if edge.key in self._edges:
                raise DuplicateEdge(
                    f"Edge {edge.kind.value} {edge.source_id} -> {edge.target_id} "
                    f"already exists in company {edge.company_id}"
                )
            self._edges[edge.key] = edge
        return edge

    async def delete_edge(
        self,
        kind: EdgeKind,
        company_id: UUID,
        source_id: UUID,
        target_id: UUID,
    ) -> bool:
        with self._lock:
            return self._edges.pop((kind, company_id, source_id, target_id), None) is not None

    async def list_edges_from(
        self, source_id: UUID, kind: EdgeKind
    ) -> list[DelegationEdge]:
        with self._lock:
            edges = list(self._edges.values())
        return [e for e in edges if e.source_id == source_id and e.kind == kind]

    async def list_edges_to(
        self, target_id: UUID, kind: EdgeKind
    ) -> list[DelegationEdge]:
        with self._lock:
            edges = list(self._edges.values())
        return [e for e in edges if e.target_id == target_id and e.kind == kind]

    # Grant operations
    async def insert_grant(self, grant: InternalAccessGrant) -> InternalAccessGrant:
        key = (grant.staff_id, grant.company_id)
        with self._lock:
            if key in self._grants:
                raise DuplicateEdge(
                    f"Staff {grant.staff_id} already has a grant for "
                    f"company {grant.company_id}"
                )
            self._grants[key] = grant
        return grant

    async def delete_grant(self, staff_id: UUID, company_id: UUID) -> bool:
        with self._lock:
            return self._grants.pop((staff_id, company_id), None) is not None

    async def list_grants(self, staff_id: UUID) -> list[InternalAccessGrant]:
        with self._lock:
            grants = list(self._grants.values())
        return [g for g in grants if g.staff_id == staff_id]

    # Cascade
    async def delete_company(self, company_id: UUID) -> int:
        with self._lock:
            edge_keys = [k for k, e in self._edges.items() if e.company_id == company_id]
            grant_keys = [k for k, g in self._grants.items() if g.company_id == company_id]
            for key in edge_keys:
                del self._edges[key]
            for gkey in grant_keys:
                del self._grants[gkey]
        return len(edge_keys) + len(grant_keys)
