"""Configuration model exports.

    from custos.config.models import AuditConfig, StorageConfig
"""

from custos.config.models.access import AccessConfig
from custos.config.models.audit import AuditConfig, EntityAttributionConfig
from custos.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from custos.config.models.storage import PostgresConfig, StorageConfig

__all__ = [
    "AccessConfig",
    "AuditConfig",
    "EntityAttributionConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "StorageConfig",
]
