"""Access scope models."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from custos.identity.models import Universe


class AccessScope(BaseModel):
    """Companies and end-clients an actor may currently see.

    `unrestricted` is set only for internal staff without any access
    grant; the id sets then hold every company and end-client that existed
    when the scope was resolved.
    """

    model_config = ConfigDict(frozen=True)

    actor_id: UUID = Field(..., description="Actor the scope was resolved for")
    universe: Universe = Field(..., description="Actor universe")
    unrestricted: bool = Field(default=False, description="No grant narrows the scope")
    company_ids: frozenset[UUID] = Field(default_factory=frozenset)
    end_client_ids: frozenset[UUID] = Field(default_factory=frozenset)

    def can_see_company(self, company_id: UUID) -> bool:
        return company_id in self.company_ids

    def can_see_end_client(self, end_client_id: UUID) -> bool:
        return end_client_id in self.end_client_ids

    @property
    def is_empty(self) -> bool:
        return not self.company_ids and not self.end_client_ids
