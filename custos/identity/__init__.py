"""Identity model: internal staff, company users, companies and end-clients."""

from custos.identity.models import (
    Actor,
    ActorRef,
    ActorStatus,
    Company,
    CompanyRole,
    CompanyStatus,
    EndClient,
    InternalRole,
    ResolvedActor,
    Universe,
)
from custos.identity.service import IdentityModel

__all__ = [
    "Actor",
    "ActorRef",
    "ActorStatus",
    "Company",
    "CompanyRole",
    "CompanyStatus",
    "EndClient",
    "IdentityModel",
    "InternalRole",
    "ResolvedActor",
    "Universe",
]
