"""Identity domain models.

Two actor universes exist side by side: internal staff of the CRM operator
and company users who belong to exactly one tenant company.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class Universe(str, Enum):
    """Actor universe.

    - INTERNAL: staff of the CRM operator
    - COMPANY: users of a tenant company
    """

    INTERNAL = "internal"
    COMPANY = "company"


class InternalRole(str, Enum):
    """Roles available to internal staff."""

    ADMIN = "admin"
    SUPPORT = "support"
    DEVELOPER = "developer"


class CompanyRole(str, Enum):
    """Roles available to company users."""

    OWNER = "owner"
    SUPERVISOR = "supervisor"
    COLLABORATOR = "collaborator"


class ActorStatus(str, Enum):
    """Account status. Informational; does not narrow access scope."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class CompanyStatus(str, Enum):
    """Company lifecycle status. Informational; does not narrow access scope."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ONBOARDING = "onboarding"
    SUSPENDED = "suspended"


Role = InternalRole | CompanyRole


class Actor(BaseModel):
    """An identity that can perform or be attributed a mutation."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    universe: Universe = Field(..., description="Actor universe")
    role: Role = Field(..., description="Role within the universe")
    company_id: UUID | None = Field(
        default=None, description="Owning company (company users only)"
    )
    display_name: str = Field(default="", description="Name shown in UIs")
    email: str | None = Field(default=None, description="Login email")
    status: ActorStatus = Field(default=ActorStatus.ACTIVE, description="Account status")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")

    @model_validator(mode="after")
    def _check_universe(self) -> "Actor":
        if self.universe == Universe.COMPANY:
            if not isinstance(self.role, CompanyRole):
                raise ValueError(f"role {self.role.value!r} is not a company role")
            if self.company_id is None:
                raise ValueError("company users must belong to a company")
        else:
            if not isinstance(self.role, InternalRole):
                raise ValueError(f"role {self.role.value!r} is not an internal role")
            if self.company_id is not None:
                raise ValueError(
                    "internal staff reach companies through access grants, "
                    "not company_id"
                )
        return self

    @classmethod
    def internal(cls, role: InternalRole, **kwargs) -> "Actor":
        """Build an internal staff member."""
        return cls(universe=Universe.INTERNAL, role=role, **kwargs)

    @classmethod
    def company_user(cls, company_id: UUID, role: CompanyRole, **kwargs) -> "Actor":
        """Build a company user."""
        return cls(
            universe=Universe.COMPANY, role=role, company_id=company_id, **kwargs
        )


class ActorRef(BaseModel):
    """Caller-supplied reference to an actor.

    The universe is optional; when given, an actor found in the other
    universe does not resolve.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    universe: Universe | None = None


class ResolvedActor(BaseModel):
    """Result of resolving an ActorRef through the identity model."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    universe: Universe
    role: Role
    company_id: UUID | None = None

    @property
    def is_internal(self) -> bool:
        return self.universe == Universe.INTERNAL


class Company(BaseModel):
    """A tenant of the CRM."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    name: str = Field(..., description="Company name")
    status: CompanyStatus = Field(default=CompanyStatus.ACTIVE, description="Lifecycle status")
    created_at: datetime = Field(default_factory=utc_now, description="Onboarding time")


class EndClient(BaseModel):
    """A customer of a company."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    company_id: UUID = Field(..., description="Owning company")
    name: str = Field(..., description="End-client name")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
