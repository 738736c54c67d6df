"""Access scope resolution configuration models."""

from pydantic import BaseModel, Field


class AccessConfig(BaseModel):
    """Access scope resolver configuration."""

    supervisor_hop_limit: int = Field(
        default=1,
        ge=0,
        le=5,
        description=(
            "Supervisor-to-collaborator hops followed when resolving a "
            "supervisor's scope (0 = direct edges only)"
        ),
    )
