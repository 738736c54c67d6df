"""Store error hierarchy for storage backends.

All store implementations raise these errors so callers can handle
backend failures the same way regardless of the backend in use.
"""


class StoreError(Exception):
    """Base exception for all store errors.

    Backend-specific errors (asyncpg, etc.) are wrapped in one of the
    StoreError subclasses with the original exception kept as `cause`.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when the store cannot be reached.

    Examples:
        - Database connection timeout
        - Pool exhausted or closed
        - Network errors
    """

    pass


class NotFoundError(StoreError):
    """Raised when a referenced entity does not exist.

    Examples:
        - Foreign key violation on insert

    Not raised for empty search results.
    """

    pass


class ValidationError(StoreError):
    """Raised when the backend rejects data as invalid.

    Examples:
        - Check constraint violation
    """

    pass
