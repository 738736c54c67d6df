"""Prometheus metrics for Custos.

Audit write outcomes, delegation graph mutations and scope resolution.
"""

from prometheus_client import Counter, Histogram

# Audit trail metrics
AUDIT_RECORDS_WRITTEN = Counter(
    "custos_audit_records_written_total",
    "Total number of audit records persisted",
    labelnames=["action"],
)

AUDIT_WRITE_FAILURES = Counter(
    "custos_audit_write_failures_total",
    "Total number of failed audit write attempts",
    labelnames=["error_type"],
)

AUDIT_RECORDS_DROPPED = Counter(
    "custos_audit_records_dropped_total",
    "Total number of audit records that were never persisted",
    labelnames=["reason"],
)

# Delegation graph metrics
DELEGATION_EDGES_ADDED = Counter(
    "custos_delegation_edges_added_total",
    "Total number of delegation edges and grants added",
    labelnames=["kind"],
)

DELEGATION_EDGES_REMOVED = Counter(
    "custos_delegation_edges_removed_total",
    "Total number of delegation edges and grants removed",
    labelnames=["kind"],
)

# Access scope metrics
SCOPE_RESOLUTIONS = Counter(
    "custos_scope_resolutions_total",
    "Total number of access scope resolutions",
    labelnames=["universe", "role"],
)

SCOPE_RESOLUTION_LATENCY = Histogram(
    "custos_scope_resolution_latency_seconds",
    "Access scope resolution latency in seconds",
    labelnames=["universe"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)
