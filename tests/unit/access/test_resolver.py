"""Tests for AccessScopeResolver."""

from uuid import uuid4

import pytest

from custos.access.resolver import AccessScopeResolver
from custos.delegation.models import EdgeKind
from custos.errors import UnknownActor
from custos.identity.models import (
    Actor,
    ActorRef,
    Company,
    CompanyRole,
    EndClient,
    InternalRole,
    Universe,
)


async def add_end_client(identity, company_id, name="Client"):
    return await identity.register_end_client(EndClient(company_id=company_id, name=name))


async def add_user(identity, company_id, role):
    return await identity.register_actor(Actor.company_user(company_id, role))


class TestInternalStaff:
    """Internal staff: no grants means every company."""

    async def test_no_grants_sees_everything(
        self, resolver, identity, staff, company, other_company, end_clients
    ):
        foreign = await add_end_client(identity, other_company.id)

        scope = await resolver.resolve(staff.id)

        assert scope.unrestricted is True
        assert scope.company_ids == {company.id, other_company.id}
        assert scope.end_client_ids == {ec.id for ec in end_clients} | {foreign.id}

    async def test_no_grants_sees_companies_created_later(self, resolver, identity, staff):
        before = await resolver.resolve(staff.id)
        late = await identity.register_company(Company(name="Initech"))

        after = await resolver.resolve(staff.id)

        assert not before.can_see_company(late.id)
        assert after.can_see_company(late.id)

    async def test_grants_restrict_to_granted_companies(
        self, resolver, identity, graph, staff, company, other_company, end_clients
    ):
        foreign = await add_end_client(identity, other_company.id)
        await graph.add_grant(staff.id, company.id)

        scope = await resolver.resolve(staff.id)

        assert scope.unrestricted is False
        assert scope.company_ids == {company.id}
        assert scope.end_client_ids == {ec.id for ec in end_clients}
        assert not scope.can_see_end_client(foreign.id)

    async def test_multiple_grants_never_more(self, resolver, identity, graph, staff):
        companies = [await identity.register_company(Company(name=f"C{i}")) for i in range(4)]
        clients = {c.id: await add_end_client(identity, c.id) for c in companies}
        granted = companies[:2]
        for c in granted:
            await graph.add_grant(staff.id, c.id)

        scope = await resolver.resolve(staff.id)

        assert scope.company_ids == {c.id for c in granted}
        assert scope.end_client_ids == {clients[c.id].id for c in granted}

    async def test_removing_last_grant_restores_unrestricted(
        self, resolver, graph, staff, company, other_company
    ):
        await graph.add_grant(staff.id, company.id)
        await graph.remove_grant(staff.id, company.id)

        scope = await resolver.resolve(staff.id)

        assert scope.unrestricted is True
        assert scope.company_ids == {company.id, other_company.id}

    @pytest.mark.parametrize("role", list(InternalRole))
    async def test_every_internal_role_defaults_to_unrestricted(
        self, resolver, identity, company, role
    ):
        member = await identity.register_actor(Actor.internal(role))
        assert (await resolver.resolve(member.id)).unrestricted


class TestOwner:
    """Owners see their whole company."""

    async def test_owner_sees_all_company_end_clients(
        self, resolver, owner, company, end_clients
    ):
        scope = await resolver.resolve(owner.id)

        assert scope.company_ids == {company.id}
        assert scope.end_client_ids == {ec.id for ec in end_clients}
        assert scope.unrestricted is False

    async def test_owner_not_narrowed_by_edges(
        self, resolver, graph, owner, company, end_clients
    ):
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_END_CLIENT, company.id, owner.id, end_clients[0].id
        )

        scope = await resolver.resolve(owner.id)

        assert scope.end_client_ids == {ec.id for ec in end_clients}

    async def test_owner_of_empty_company_still_sees_company(self, resolver, owner, company):
        scope = await resolver.resolve(owner.id)
        assert scope.company_ids == {company.id}
        assert scope.end_client_ids == frozenset()


class TestCompanyUserDefaults:
    """Supervisors and collaborators without edges see nothing."""

    async def test_collaborator_without_edges_sees_nothing(
        self, resolver, collaborator, end_clients, staff
    ):
        scope = await resolver.resolve(collaborator.id)

        assert scope.is_empty
        assert scope.unrestricted is False
        # Internal staff without grants is the opposite case
        assert not (await resolver.resolve(staff.id)).is_empty

    async def test_supervisor_without_edges_sees_nothing(self, resolver, supervisor, end_clients):
        assert (await resolver.resolve(supervisor.id)).is_empty


class TestCollaborator:
    """Collaborators see only their direct edges."""

    async def test_direct_edges_only(self, resolver, graph, collaborator, company, end_clients):
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, collaborator.id, end_clients[0].id
        )

        scope = await resolver.resolve(collaborator.id)

        assert scope.end_client_ids == {end_clients[0].id}
        assert scope.company_ids == {company.id}

    async def test_supervisor_edges_ignored_for_collaborator(
        self, resolver, graph, identity, collaborator, company, end_clients
    ):
        other = await add_user(identity, company.id, CompanyRole.COLLABORATOR)
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, collaborator.id, other.id
        )
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, other.id, end_clients[1].id
        )

        assert (await resolver.resolve(collaborator.id)).is_empty


class TestSupervisor:
    """Supervisors inherit through one supervision hop."""

    async def test_union_of_direct_and_inherited(
        self, resolver, graph, supervisor, collaborator, company, end_clients
    ):
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_END_CLIENT, company.id, supervisor.id, end_clients[0].id
        )
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, supervisor.id, collaborator.id
        )
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, collaborator.id, end_clients[1].id
        )

        scope = await resolver.resolve(supervisor.id)

        assert scope.end_client_ids == {end_clients[0].id, end_clients[1].id}
        assert not scope.can_see_end_client(end_clients[2].id)

    async def test_third_hop_has_no_effect(
        self, resolver, graph, identity, supervisor, collaborator, company, end_clients
    ):
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, supervisor.id, collaborator.id
        )
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, collaborator.id, end_clients[0].id
        )
        before = await resolver.resolve(supervisor.id)

        grand = await add_user(identity, company.id, CompanyRole.COLLABORATOR)
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, collaborator.id, grand.id
        )
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, grand.id, end_clients[2].id
        )
        after = await resolver.resolve(supervisor.id)

        assert after == before
        assert not after.can_see_end_client(end_clients[2].id)

    async def test_larger_hop_limit_follows_deeper_edges(
        self, identity, graph, supervisor, collaborator, company, end_clients
    ):
        grand = await add_user(identity, company.id, CompanyRole.COLLABORATOR)
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, supervisor.id, collaborator.id
        )
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, collaborator.id, grand.id
        )
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, grand.id, end_clients[2].id
        )

        deep = AccessScopeResolver(identity, graph, supervisor_hop_limit=2)

        assert (await deep.resolve(supervisor.id)).can_see_end_client(end_clients[2].id)

    async def test_zero_hop_limit_uses_direct_edges_only(
        self, identity, graph, supervisor, collaborator, company, end_clients
    ):
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, supervisor.id, collaborator.id
        )
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, collaborator.id, end_clients[0].id
        )

        flat = AccessScopeResolver(identity, graph, supervisor_hop_limit=0)

        assert (await flat.resolve(supervisor.id)).is_empty

    def test_negative_hop_limit_rejected(self, identity, graph):
        with pytest.raises(ValueError):
            AccessScopeResolver(identity, graph, supervisor_hop_limit=-1)

    async def test_supervision_cycle_terminates(
        self, identity, graph, supervisor, collaborator, company, end_clients
    ):
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, supervisor.id, collaborator.id
        )
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, collaborator.id, supervisor.id
        )
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, collaborator.id, end_clients[0].id
        )

        deep = AccessScopeResolver(identity, graph, supervisor_hop_limit=5)

        assert (await deep.resolve(supervisor.id)).end_client_ids == {end_clients[0].id}


class TestSupervisionScenario:
    """Collaborator K sees end-client A; supervisor S supervises K."""

    async def test_removing_supervision_edge(
        self, resolver, graph, identity, company, supervisor, collaborator
    ):
        end_client_a = await add_end_client(identity, company.id, "A")
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, collaborator.id, end_client_a.id
        )
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, supervisor.id, collaborator.id
        )

        assert (await resolver.resolve(supervisor.id)).can_see_end_client(end_client_a.id)
        collaborator_before = await resolver.resolve(collaborator.id)

        await graph.remove_edge(
            EdgeKind.SUPERVISOR_TO_COLLABORATOR, company.id, supervisor.id, collaborator.id
        )

        assert not (await resolver.resolve(supervisor.id)).can_see_end_client(end_client_a.id)
        assert await resolver.resolve(collaborator.id) == collaborator_before


class TestCompanyBoundary:
    """Edges are honored only inside the actor's own company."""

    async def test_foreign_company_edge_ignored(
        self, resolver, graph, identity, collaborator, other_company
    ):
        foreign = await add_end_client(identity, other_company.id)
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, other_company.id, collaborator.id, foreign.id
        )

        assert (await resolver.resolve(collaborator.id)).is_empty

    async def test_edge_to_foreign_end_client_ignored(
        self, resolver, graph, identity, collaborator, company, other_company
    ):
        foreign = await add_end_client(identity, other_company.id)
        await graph.add_edge(
            EdgeKind.COLLABORATOR_TO_END_CLIENT, company.id, collaborator.id, foreign.id
        )

        assert (await resolver.resolve(collaborator.id)).is_empty


class TestResolveContract:
    """Errors and helper predicates."""

    async def test_unknown_actor_propagates(self, resolver):
        with pytest.raises(UnknownActor):
            await resolver.resolve(uuid4())

    async def test_universe_mismatch_propagates(self, resolver, staff):
        with pytest.raises(UnknownActor):
            await resolver.resolve(ActorRef(id=staff.id, universe=Universe.COMPANY))

    async def test_resolution_is_idempotent(
        self, resolver, graph, supervisor, collaborator, company, end_clients
    ):
        await graph.add_edge(
            EdgeKind.SUPERVISOR_TO_END_CLIENT, company.id, supervisor.id, end_clients[0].id
        )

        assert await resolver.resolve(supervisor.id) == await resolver.resolve(supervisor.id)

    async def test_helpers(self, resolver, owner, company, end_clients, other_company):
        assert await resolver.can_see_company(owner.id, company.id)
        assert not await resolver.can_see_company(owner.id, other_company.id)
        assert await resolver.can_see_end_client(owner.id, end_clients[0].id)
