"""Audit stores for audit records."""

from custos.audit.store import AuditStore
from custos.audit.stores.inmemory import InMemoryAuditStore
from custos.audit.stores.postgres import PostgresAuditStore

__all__ = [
    "AuditStore",
    "InMemoryAuditStore",
    "PostgresAuditStore",
]
