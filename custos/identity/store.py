"""IdentityStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from custos.identity.models import Actor, Company, EndClient


class IdentityStore(ABC):
    """Abstract interface for actors, companies and end-clients.

    Companies and end-clients are owned by the surrounding schema; the
    store keeps just enough of them to enumerate access scopes.
    """

    # Actor operations
    @abstractmethod
    async def save_actor(self, actor: Actor) -> UUID:
        """Save an actor."""
        pass

    @abstractmethod
    async def get_actor(self, actor_id: UUID) -> Actor | None:
        """Get an actor by ID."""
        pass

    @abstractmethod
    async def list_actors_by_company(self, company_id: UUID) -> list[Actor]:
        """List company users belonging to a company."""
        pass

    # Company operations
    @abstractmethod
    async def save_company(self, company: Company) -> UUID:
        """Save a company."""
        pass

    @abstractmethod
    async def get_company(self, company_id: UUID) -> Company | None:
        """Get a company by ID."""
        pass

    @abstractmethod
    async def list_companies(self) -> list[Company]:
        """List all companies."""
        pass

    @abstractmethod
    async def delete_company(self, company_id: UUID) -> bool:
        """Delete a company together with its end-clients and company users."""
        pass

    # End-client operations
    @abstractmethod
    async def save_end_client(self, end_client: EndClient) -> UUID:
        """Save an end-client."""
        pass

    @abstractmethod
    async def get_end_client(self, end_client_id: UUID) -> EndClient | None:
        """Get an end-client by ID."""
        pass

    @abstractmethod
    async def list_end_clients(
        self, company_ids: list[UUID] | None = None
    ) -> list[EndClient]:
        """List end-clients, optionally restricted to the given companies."""
        pass
