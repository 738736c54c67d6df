"""Delegation stores for edges and internal access grants."""

from custos.delegation.store import DelegationStore
from custos.delegation.stores.inmemory import InMemoryDelegationStore
from custos.delegation.stores.postgres import PostgresDelegationStore

__all__ = [
    "DelegationStore",
    "InMemoryDelegationStore",
    "PostgresDelegationStore",
]
