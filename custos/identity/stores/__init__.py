"""Identity stores for actors, companies and end-clients."""

from custos.identity.store import IdentityStore
from custos.identity.stores.inmemory import InMemoryIdentityStore
from custos.identity.stores.postgres import PostgresIdentityStore

__all__ = [
    "IdentityStore",
    "InMemoryIdentityStore",
    "PostgresIdentityStore",
]
