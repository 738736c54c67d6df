"""Audit trail: records every mutation of monitored entities.

The engine writes immutable AuditRecords as a best-effort side channel of
each mutation; the query surface reads them back.
"""

from custos.audit.engine import AuditTrailEngine
from custos.audit.models import (
    AuditAction,
    AuditFilter,
    AuditPage,
    AuditRecord,
    MutationEvent,
    PageRequest,
)
from custos.audit.query import AuditQuerySurface
from custos.audit.registry import EntityAttribution, EntityAuditRegistry
from custos.audit.store import AuditStore

__all__ = [
    "AuditAction",
    "AuditFilter",
    "AuditPage",
    "AuditQuerySurface",
    "AuditRecord",
    "AuditStore",
    "AuditTrailEngine",
    "EntityAttribution",
    "EntityAuditRegistry",
    "MutationEvent",
    "PageRequest",
]
