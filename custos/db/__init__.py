"""Database utilities for Custos.

This module contains:
- Connection pool management
- Store error hierarchy
- Alembic migrations
"""

from custos.db.errors import (
    ConnectionError,
    NotFoundError,
    StoreError,
    ValidationError,
)

__all__ = [
    "StoreError",
    "ConnectionError",
    "NotFoundError",
    "ValidationError",
]
