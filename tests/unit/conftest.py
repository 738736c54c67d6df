"""Fixtures shared by the unit tests."""

import pytest

from custos.access.resolver import AccessScopeResolver
from custos.audit.registry import EntityAuditRegistry
from custos.audit.stores.inmemory import InMemoryAuditStore
from custos.delegation.graph import DelegationGraph
from custos.delegation.stores.inmemory import InMemoryDelegationStore
from custos.identity.models import Actor, Company, CompanyRole, EndClient, InternalRole
from custos.identity.service import IdentityModel
from custos.identity.stores.inmemory import InMemoryIdentityStore


@pytest.fixture
def identity_store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture
def identity(identity_store: InMemoryIdentityStore) -> IdentityModel:
    return IdentityModel(identity_store)


@pytest.fixture
def delegation_store() -> InMemoryDelegationStore:
    return InMemoryDelegationStore()


@pytest.fixture
def graph(delegation_store: InMemoryDelegationStore) -> DelegationGraph:
    return DelegationGraph(delegation_store)


@pytest.fixture
def resolver(identity: IdentityModel, graph: DelegationGraph) -> AccessScopeResolver:
    return AccessScopeResolver(identity, graph)


@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def registry() -> EntityAuditRegistry:
    registry = EntityAuditRegistry()
    registry.register("tasks.task")
    registry.register("tasks.task_comment", actor_fields=["user_id", "created_by_id"])
    registry.register("plans.plan", actor_fields=["created_by_id"], company_field=None)
    return registry


@pytest.fixture
async def company(identity: IdentityModel) -> Company:
    return await identity.register_company(Company(name="Acme"))


@pytest.fixture
async def other_company(identity: IdentityModel) -> Company:
    return await identity.register_company(Company(name="Globex"))


@pytest.fixture
async def end_clients(identity: IdentityModel, company: Company) -> list[EndClient]:
    return [
        await identity.register_end_client(EndClient(company_id=company.id, name=name))
        for name in ("Alpha", "Beta", "Gamma")
    ]


@pytest.fixture
async def owner(identity: IdentityModel, company: Company) -> Actor:
    return await identity.register_actor(
        Actor.company_user(company.id, CompanyRole.OWNER, display_name="Olivia")
    )


@pytest.fixture
async def supervisor(identity: IdentityModel, company: Company) -> Actor:
    return await identity.register_actor(
        Actor.company_user(company.id, CompanyRole.SUPERVISOR, display_name="Sam")
    )


@pytest.fixture
async def collaborator(identity: IdentityModel, company: Company) -> Actor:
    return await identity.register_actor(
        Actor.company_user(company.id, CompanyRole.COLLABORATOR, display_name="Kim")
    )


@pytest.fixture
async def staff(identity: IdentityModel) -> Actor:
    return await identity.register_actor(
        Actor.internal(InternalRole.SUPPORT, display_name="Ada")
    )
