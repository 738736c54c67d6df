"""Audit domain models.

Contains all Pydantic models for the audit trail:
- AuditRecord, the immutable log entry
- MutationEvent, the input emitted by the CRUD layer
- AuditFilter / PageRequest / AuditPage for the query surface
"""

from custos.audit.models.event import MutationEvent
from custos.audit.models.query import AuditFilter, AuditPage, PageRequest
from custos.audit.models.record import AuditAction, AuditRecord

__all__ = [
    "AuditAction",
    "AuditFilter",
    "AuditPage",
    "AuditRecord",
    "MutationEvent",
    "PageRequest",
]
