"""Domain exception hierarchy.

Identity and delegation errors are raised to the caller of the rejected
operation. InvalidAuditShape is raised by shape validation but the audit
engine catches it and never lets it reach the mutation that triggered it.
"""

from uuid import UUID


class CustosError(Exception):
    """Base exception for all Custos domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnknownActor(CustosError):
    """Raised when an actor reference does not resolve to a known actor."""

    def __init__(self, actor_id: UUID, message: str | None = None) -> None:
        super().__init__(message or f"Unknown actor: {actor_id}")
        self.actor_id = actor_id


class DelegationError(CustosError):
    """Base class for rejected delegation graph mutations."""


class DuplicateEdge(DelegationError):
    """Raised when an identical edge or grant already exists."""


class SelfReference(DelegationError):
    """Raised when a supervisor-to-collaborator edge points at its own source."""


class InvalidAuditShape(CustosError):
    """Raised when state presence does not match the audit action."""
