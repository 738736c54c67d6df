"""In-memory implementation of IdentityStore."""

from uuid import UUID

from custos.identity.models import Actor, Company, EndClient
from custos.identity.store import IdentityStore


class InMemoryIdentityStore(IdentityStore):
    """In-memory implementation of IdentityStore for testing and development.

    Uses simple dict storage with linear scan for queries.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._actors: dict[UUID, Actor] = {}
        self._companies: dict[UUID, Company] = {}
        self._end_clients: dict[UUID, EndClient] = {}

    # Actor operations
    async def save_actor(self, actor: Actor) -> UUID:
        self._actors[actor.id] = actor
        return actor.id

    async def get_actor(self, actor_id: UUID) -> Actor | None:
        return self._actors.get(actor_id)

    async def list_actors_by_company(self, company_id: UUID) -> list[Actor]:
        return [a for a in self._actors.values() if a.company_id == company_id]

    # Company operations
    async def save_company(self, company: Company) -> UUID:
        self._companies[company.id] = company
        return company.id

    async def get_company(self, company_id: UUID) -> Company | None:
        return self._companies.get(company_id)

    async def list_companies(self) -> list[Company]:
        return list(self._companies.values())

    async def delete_company(self, company_id: UUID) -> bool:
        if self._companies.pop(company_id, None) is None:
            return False
        self._end_clients = {
            ec_id: ec
            for ec_id, ec in self._end_clients.items()
            if ec.company_id != company_id
        }
        self._actors = {
            actor_id: actor
            for actor_id, actor in self._actors.items()
            if actor.company_id != company_id
        }
        return True

    # End-client operations
    async def save_end_client(self, end_client: EndClient) -> UUID:
        self._end_clients[end_client.id] = end_client
        return end_client.id

    async def get_end_client(self, end_client_id: UUID) -> EndClient | None:
        return self._end_clients.get(end_client_id)

    async def list_end_clients(
        self, company_ids: list[UUID] | None = None
    ) -> list[EndClient]:
        if company_ids is None:
            return list(self._end_clients.values())
        wanted = set(company_ids)
        return [ec for ec in self._end_clients.values() if ec.company_id in wanted]
