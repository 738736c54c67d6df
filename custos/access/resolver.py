"""Access scope resolver.

Answers "which companies and end-clients can this actor see right now?"
from the identity model and the delegation graph.

The two actor universes have OPPOSITE defaults and both are intended:

* internal staff with no InternalAccessGrant rows see EVERY company
  (absence of grants means unrestricted, not "no access");
* supervisors and collaborators with no delegation edges see NOTHING.

Do not unify them.
"""

import time
from uuid import UUID

from custos.access.models import AccessScope
from custos.delegation.graph import DelegationGraph
from custos.delegation.models import EdgeKind
from custos.identity.models import ActorRef, CompanyRole, ResolvedActor
from custos.identity.service import IdentityModel
from custos.observability.logging import get_logger
from custos.observability.metrics import SCOPE_RESOLUTION_LATENCY, SCOPE_RESOLUTIONS

logger = get_logger(__name__)


class AccessScopeResolver:
    """Computes effective visibility sets.

    Resolution only reads. Edges added or removed while a resolution is in
    flight may or may not be reflected in its result.
    """

    def __init__(
        self,
        identity: IdentityModel,
        graph: DelegationGraph,
        supervisor_hop_limit: int = 1,
    ) -> None:
        """Initialize the resolver.

        Args:
            identity: Identity model used to resolve actor references
            graph: Delegation graph holding edges and staff grants
            supervisor_hop_limit: Supervisor-to-collaborator hops followed for
                supervisors. 1 means a supervisor inherits what its directly
                supervised collaborators see, and nothing further.
        """
        if supervisor_hop_limit < 0:
            raise ValueError("supervisor_hop_limit must be >= 0")
        self._identity = identity
        self._graph = graph
        self._hop_limit = supervisor_hop_limit

    async def resolve(self, ref: ActorRef | UUID) -> AccessScope:
        """Resolve the scope of an actor.

        Raises:
            UnknownActor: If the reference does not resolve.
        """
        actor = await self._identity.resolve(ref)
        start = time.perf_counter()

        if actor.is_internal:
            scope = await self._resolve_internal(actor)
        else:
            scope = await self._resolve_company_user(actor)

        SCOPE_RESOLUTION_LATENCY.labels(universe=actor.universe.value).observe(
            time.perf_counter() - start
        )
        SCOPE_RESOLUTIONS.labels(
            universe=actor.universe.value, role=actor.role.value
        ).inc()
        logger.debug(
            "access_scope_resolved",
            actor_id=str(actor.id),
            role=actor.role.value,
            unrestricted=scope.unrestricted,
            companies=len(scope.company_ids),
            end_clients=len(scope.end_client_ids),
        )
        return scope

    async def can_see_end_client(self, ref: ActorRef | UUID, end_client_id: UUID) -> bool:
        scope = await self.resolve(ref)
        return scope.can_see_end_client(end_client_id)

    async def can_see_company(self, ref: ActorRef | UUID, company_id: UUID) -> bool:
        scope = await self.resolve(ref)
        return scope.can_see_company(company_id)

    async def _resolve_internal(self, actor: ResolvedActor) -> AccessScope:
        store = self._identity.store
        grants = await self._graph.list_grants(actor.id)

        # No grant rows: unrestricted. This is the intended default for staff.
        if not grants:
            companies = await store.list_companies()
            company_ids = frozenset(c.id for c in companies)
            end_clients = await store.list_end_clients()
            return AccessScope(
                actor_id=actor.id,
                universe=actor.universe,
                unrestricted=True,
                company_ids=company_ids,
                end_client_ids=frozenset(ec.id for ec in end_clients),
            )

        company_ids = frozenset(g.company_id for g in grants)
        end_clients = await store.list_end_clients(list(company_ids))
        return AccessScope(
            actor_id=actor.id,
            universe=actor.universe,
            company_ids=company_ids,
            end_client_ids=frozenset(ec.id for ec in end_clients),
        )

    async def _resolve_company_user(self, actor: ResolvedActor) -> AccessScope:
        company_id = actor.company_id
        company_end_clients = {
            ec.id
            for ec in await self._identity.store.list_end_clients([company_id])
        }

        if actor.role == CompanyRole.OWNER:
            # Owners are never narrowed by delegation edges
            return AccessScope(
                actor_id=actor.id,
                universe=actor.universe,
                company_ids=frozenset({company_id}),
                end_client_ids=frozenset(company_end_clients),
            )

        if actor.role == CompanyRole.SUPERVISOR:
            reachable = await self._supervisor_end_clients(actor.id, company_id)
        else:
            reachable = await self._end_clients_via(
                actor.id, EdgeKind.COLLABORATOR_TO_END_CLIENT, company_id
            )

        # No edges: empty scope. Default-deny for supervisors and collaborators.
        visible = reachable & company_end_clients
        return AccessScope(
            actor_id=actor.id,
            universe=actor.universe,
            company_ids=frozenset({company_id}) if visible else frozenset(),
            end_client_ids=frozenset(visible),
        )

    async def _supervisor_end_clients(self, supervisor_id: UUID, company_id: UUID) -> set[UUID]:
        reachable = await self._end_clients_via(
            supervisor_id, EdgeKind.SUPERVISOR_TO_END_CLIENT, company_id
        )

        # Bounded closure over supervision edges; hop_limit=1 stops at the
        # directly supervised collaborators.
        visited = {supervisor_id}
        frontier = {supervisor_id}
        for _ in range(self._hop_limit):
            supervised: set[UUID] = set()
            for source_id in frontier:
                for edge in await self._graph.edges_from(
                    source_id, EdgeKind.SUPERVISOR_TO_COLLABORATOR
                ):
                    if edge.company_id == company_id and edge.target_id not in visited:
                        supervised.add(edge.target_id)
            if not supervised:
                break
            for collaborator_id in supervised:
                reachable |= await self._end_clients_via(
                    collaborator_id, EdgeKind.COLLABORATOR_TO_END_CLIENT, company_id
                )
            visited |= supervised
            frontier = supervised

        return reachable

    async def _end_clients_via(
        self, source_id: UUID, kind: EdgeKind, company_id: UUID
    ) -> set[UUID]:
        edges = await self._graph.edges_from(source_id, kind)
        return {e.target_id for e in edges if e.company_id == company_id}
