"""DelegationStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from custos.delegation.models import DelegationEdge, EdgeKind, InternalAccessGrant


class DelegationStore(ABC):
    """Abstract interface for delegation edges and internal access grants.

    Implementations enforce uniqueness and the no-self-supervision rule
    atomically with the insert: two concurrent inserts of the same edge
    must not both succeed. Violations raise DuplicateEdge or SelfReference.
    """

    # Edge operations
    @abstractmethod
    async def insert_edge(self, edge: DelegationEdge) -> DelegationEdge:
        """Insert an edge, rejecting duplicates and self-supervision."""
        pass

    @abstractmethod
    async def delete_edge(
        self,
        kind: EdgeKind,
        company_id: UUID,
        source_id: UUID,
        target_id: UUID,
    ) -> bool:
        """Delete an edge. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_edges_from(
        self, source_id: UUID, kind: EdgeKind
    ) -> list[DelegationEdge]:
        """List edges of a kind leaving an actor, in insertion order."""
        pass

    @abstractmethod
    async def list_edges_to(
        self, target_id: UUID, kind: EdgeKind
    ) -> list[DelegationEdge]:
        """List edges of a kind arriving at a target, in insertion order."""
        pass

    # Grant operations
    @abstractmethod
    async def insert_grant(self, grant: InternalAccessGrant) -> InternalAccessGrant:
        """Insert an internal access grant, rejecting duplicates."""
        pass

    @abstractmethod
    async def delete_grant(self, staff_id: UUID, company_id: UUID) -> bool:
        """Delete a grant. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_grants(self, staff_id: UUID) -> list[InternalAccessGrant]:
        """List grants held by a staff member, in insertion order."""
        pass

    # Cascade
    @abstractmethod
    async def delete_company(self, company_id: UUID) -> int:
        """Delete every edge and grant scoped to a company. Returns the count."""
        pass
