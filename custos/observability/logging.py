"""Structured logging configuration using structlog.

JSON lines in production, colored console output in development. Audit
state snapshots hold customer data, so the redaction processor never lets
them reach a log line.
"""

import logging
import re
import sys
from collections.abc import Mapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

SENSITIVE_KEYS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "authorization",
    "credentials",
    "email",
    "phone",
    "tax_id",
    "document_number",
})

# Keys holding entity snapshots; logged as a field count only
SNAPSHOT_KEYS: frozenset[str] = frozenset({"prior_state", "new_state", "payload"})

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"\+?[\d\s\-\(\)]{10,}")
UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class PIIRedactor:
    """structlog processor that scrubs personal data from events.

    Sensitive keys are masked, snapshot keys are collapsed, and any other
    string value has e-mail addresses and phone numbers replaced. UUID
    strings are left alone since every actor, company and entity id is one.
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._scrub_mapping(event_dict))

    def _scrub_mapping(self, data: Mapping[str, Any]) -> dict[str, Any]:
        scrubbed: dict[str, Any] = {}
        for key, value in data.items():
            lowered = key.lower()
            if lowered in SENSITIVE_KEYS:
                scrubbed[key] = "[REDACTED]"
            elif lowered in SNAPSHOT_KEYS and value is not None:
                scrubbed[key] = _snapshot_summary(value)
            else:
                scrubbed[key] = self._scrub_value(value)
        return scrubbed

    def _scrub_value(self, value: Any) -> Any:
        if isinstance(value, str):
            if UUID_PATTERN.match(value):
                return value
            return PHONE_PATTERN.sub("[PHONE]", EMAIL_PATTERN.sub("[EMAIL]", value))
        if isinstance(value, Mapping):
            return self._scrub_mapping(value)
        if isinstance(value, list | tuple):
            return [self._scrub_value(item) for item in value]
        return value


def _snapshot_summary(value: Any) -> str:
    if isinstance(value, Mapping):
        return f"[SNAPSHOT {len(value)} fields]"
    return "[SNAPSHOT]"


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
) -> None:
    """Configure structlog for the whole process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: "json" or "console"
        redact_pii: Install the PIIRedactor processor
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if redact_pii:
        processors.append(PIIRedactor())
    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    min_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
