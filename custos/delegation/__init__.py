"""Delegation graph: edges between actors and end-clients, and staff grants."""

from custos.delegation.graph import DelegationGraph
from custos.delegation.models import DelegationEdge, EdgeKind, InternalAccessGrant

__all__ = [
    "DelegationEdge",
    "DelegationGraph",
    "EdgeKind",
    "InternalAccessGrant",
]
