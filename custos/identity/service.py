"""Identity model: resolve actor references into roles and companies."""

from uuid import UUID

from custos.errors import UnknownActor
from custos.identity.models import Actor, ActorRef, Company, EndClient, ResolvedActor
from custos.identity.store import IdentityStore
from custos.observability.logging import get_logger

logger = get_logger(__name__)


class IdentityModel:
    """Read-side facade over the identity store.

    `resolve` is a pure lookup. The registration helpers exist so the
    surrounding schema layer can mirror the actors, companies and
    end-clients the core needs to know about.
    """

    def __init__(self, store: IdentityStore) -> None:
        self._store = store

    @property
    def store(self) -> IdentityStore:
        return self._store

    async def resolve(self, ref: ActorRef | UUID) -> ResolvedActor:
        """Resolve an actor reference.

        Raises:
            UnknownActor: If no actor has the id, or the actor lives in a
                different universe than the one the reference names.
        """
        if isinstance(ref, UUID):
            ref = ActorRef(id=ref)

        actor = await self._store.get_actor(ref.id)
        if actor is None:
            raise UnknownActor(ref.id)
        if ref.universe is not None and actor.universe != ref.universe:
            raise UnknownActor(
                ref.id,
                f"Actor {ref.id} is not a {ref.universe.value} actor",
            )

        return ResolvedActor(
            id=actor.id,
            universe=actor.universe,
            role=actor.role,
            company_id=actor.company_id,
        )

    async def register_actor(self, actor: Actor) -> Actor:
        if actor.company_id is not None:
            company = await self._store.get_company(actor.company_id)
            if company is None:
                raise ValueError(f"Unknown company: {actor.company_id}")
        await self._store.save_actor(actor)
        logger.info(
            "actor_registered",
            actor_id=str(actor.id),
            universe=actor.universe.value,
            role=actor.role.value,
        )
        return actor

    async def register_company(self, company: Company) -> Company:
        await self._store.save_company(company)
        logger.info("company_registered", company_id=str(company.id))
        return company

    async def register_end_client(self, end_client: EndClient) -> EndClient:
        company = await self._store.get_company(end_client.company_id)
        if company is None:
            raise ValueError(f"Unknown company: {end_client.company_id}")
        await self._store.save_end_client(end_client)
        return end_client

    async def delete_company(self, company_id: UUID) -> bool:
        """Delete a company, its end-clients and its company users.

        Delegation rows scoped to the company are removed separately by
        DelegationGraph.remove_company.
        """
        deleted = await self._store.delete_company(company_id)
        if deleted:
            logger.info("company_deleted", company_id=str(company_id))
        return deleted
