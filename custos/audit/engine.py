"""Audit trail engine.

Turns mutation events into immutable AuditRecords and persists them. The
engine is a side channel of the mutation that triggered it: no error raised
while building or writing a record ever reaches the caller. Writes that
keep failing are parked in a bounded pending buffer that `flush()` drains;
records that cannot be kept are counted as dropped.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog
from pydantic import TypeAdapter

from custos.audit.models import AuditAction, AuditRecord, MutationEvent
from custos.audit.registry import EntityAuditRegistry
from custos.audit.store import AuditStore
from custos.errors import InvalidAuditShape, UnknownActor
from custos.identity.models import ActorRef, ResolvedActor
from custos.identity.service import IdentityModel
from custos.observability.logging import get_logger
from custos.observability.metrics import (
    AUDIT_RECORDS_DROPPED,
    AUDIT_RECORDS_WRITTEN,
    AUDIT_WRITE_FAILURES,
)

logger = get_logger(__name__)

ActorLike = ActorRef | UUID | ResolvedActor

_STATE_ADAPTER: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


@dataclass
class _PendingRecord:
    record: AuditRecord
    flush_attempts: int = 0


class AuditTrailEngine:
    """Records every mutation of a monitored entity.

    Actor attribution prefers the explicit actor passed by the caller. When
    there is none, the entity's registered payload fields are read from the
    new state (created/updated) or the prior state (deleted).
    """

    def __init__(
        self,
        store: AuditStore,
        identity: IdentityModel,
        registry: EntityAuditRegistry | None = None,
        *,
        enabled: bool = True,
        max_write_attempts: int = 3,
        pending_buffer_size: int = 1000,
        max_flush_attempts: int = 5,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Append-only audit storage
            identity: Identity model used to resolve actors
            registry: Attribution fields per monitored entity
            enabled: When False, `record` is a no-op
            max_write_attempts: Inline attempts before a record is buffered
            pending_buffer_size: Capacity of the pending buffer; 0 disables it
            max_flush_attempts: Flush attempts per buffered record
        """
        if max_write_attempts < 1:
            raise ValueError("max_write_attempts must be at least 1")
        if pending_buffer_size < 0:
            raise ValueError("pending_buffer_size must not be negative")
        if max_flush_attempts < 1:
            raise ValueError("max_flush_attempts must be at least 1")

        self._store = store
        self._identity = identity
        self._registry = registry or EntityAuditRegistry()
        self._enabled = enabled
        self._max_write_attempts = max_write_attempts
        self._pending_buffer_size = pending_buffer_size
        self._max_flush_attempts = max_flush_attempts

        self._pending: deque[_PendingRecord] = deque()
        self._flush_lock = asyncio.Lock()
        self._dropped = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> EntityAuditRegistry:
        return self._registry

    @property
    def dropped_count(self) -> int:
        """Records that were never persisted since the engine started."""
        return self._dropped

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @staticmethod
    def validate_shape(
        action: AuditAction,
        prior_state: dict[str, Any] | None,
        new_state: dict[str, Any] | None,
    ) -> None:
        """Check that state presence matches the action.

        Raises:
            InvalidAuditShape: created with a prior state, deleted with a
                new state, or updated without both states.
        """
        if action == AuditAction.CREATED and prior_state is not None:
            raise InvalidAuditShape("A created record must not carry a prior state")
        if action == AuditAction.DELETED and new_state is not None:
            raise InvalidAuditShape("A deleted record must not carry a new state")
        if action == AuditAction.UPDATED and (prior_state is None or new_state is None):
            raise InvalidAuditShape("An updated record must carry both prior and new state")

    async def build_record(
        self,
        actor: ActorLike | None,
        action: AuditAction,
        entity_name: str,
        entity_id: UUID,
        prior_state: dict[str, Any] | None = None,
        new_state: dict[str, Any] | None = None,
    ) -> AuditRecord:
        """Validate, attribute and build a record without persisting it.

        Raises:
            InvalidAuditShape: If state presence does not match the action.
        """
        action = AuditAction(action)
        self.validate_shape(action, prior_state, new_state)

        prior = _normalize_state(prior_state)
        new = _normalize_state(new_state)
        payload = prior if action == AuditAction.DELETED else new

        attribution = self._registry.get(entity_name)
        if actor is None and attribution is not None:
            actor = attribution.actor_id_from(payload)

        resolved = await self._resolve_actor(actor, entity_name, entity_id)

        company_id = attribution.company_id_from(payload) if attribution is not None else None
        if company_id is None and resolved is not None:
            company_id = resolved.company_id

        return AuditRecord(
            company_id=company_id,
            actor_id=resolved.id if resolved is not None else None,
            action=action,
            entity_name=entity_name,
            entity_id=entity_id,
            prior_state=prior,
            new_state=new,
        )

    async def record(
        self,
        actor: ActorLike | None,
        action: AuditAction,
        entity_name: str,
        entity_id: UUID,
        prior_state: dict[str, Any] | None = None,
        new_state: dict[str, Any] | None = None,
    ) -> AuditRecord | None:
        """Record one mutation. Never raises.

        Returns:
            The persisted record, or None if it was rejected, buffered for a
            later flush, or auditing is disabled.
        """
        if not self._enabled:
            return None

        with structlog.contextvars.bound_contextvars(
            entity_name=entity_name, entity_id=str(entity_id)
        ):
            try:
                record = await self.build_record(
                    actor, action, entity_name, entity_id, prior_state, new_state
                )
            except InvalidAuditShape as e:
                logger.warning(
                    "audit_shape_invalid",
                    action=AuditAction(action).value,
                    error=e.message,
                )
                self._count_drop("invalid_shape")
                return None
            except Exception as e:
                logger.error("audit_record_build_failed", error=str(e))
                self._count_drop("build_failed")
                return None

            if not await self._persist(record):
                self._enqueue(record)
                return None

        if self._pending:
            await self.flush()
        return record

    async def record_event(
        self,
        event: MutationEvent,
        actor: ActorLike | None = None,
    ) -> AuditRecord | None:
        """Record a mutation event emitted by the CRUD layer. Never raises."""
        return await self.record(
            actor,
            event.action,
            event.entity_name,
            event.entity_id,
            event.prior_state,
            event.new_state,
        )

    async def flush(self) -> int:
        """Retry buffered records once each.

        A record that has used up its flush attempts is dropped. Returns the
        number of records persisted. Concurrent calls return 0 while another
        flush is running.
        """
        if self._flush_lock.locked():
            return 0

        written = 0
        async with self._flush_lock:
            for _ in range(len(self._pending)):
                if not self._pending:
                    break
                entry = self._pending.popleft()
                entry.flush_attempts += 1
                try:
                    await self._store.save_record(entry.record)
                except Exception as e:
                    AUDIT_WRITE_FAILURES.labels(error_type=type(e).__name__).inc()
                    logger.warning(
                        "audit_flush_failed",
                        record_id=str(entry.record.id),
                        attempt=entry.flush_attempts,
                        max_attempts=self._max_flush_attempts,
                        error=str(e),
                    )
                    if entry.flush_attempts >= self._max_flush_attempts:
                        self._drop(entry.record, "retries_exhausted")
                    else:
                        self._push(entry)
                    continue

                AUDIT_RECORDS_WRITTEN.labels(action=entry.record.action.value).inc()
                written += 1

        if written:
            logger.info("audit_pending_flushed", written=written, pending=len(self._pending))
        return written

    async def _resolve_actor(
        self,
        actor: ActorLike | None,
        entity_name: str,
        entity_id: UUID,
    ) -> ResolvedActor | None:
        if actor is None or isinstance(actor, ResolvedActor):
            return actor
        try:
            return await self._identity.resolve(actor)
        except UnknownActor as e:
            logger.warning(
                "audit_actor_unresolved",
                actor_id=str(e.actor_id),
                entity_name=entity_name,
                entity_id=str(entity_id),
            )
        except Exception as e:
            logger.error(
                "audit_actor_lookup_failed",
                entity_name=entity_name,
                entity_id=str(entity_id),
                error=str(e),
            )
        return None

    async def _persist(self, record: AuditRecord) -> bool:
        for attempt in range(self._max_write_attempts):
            try:
                await self._store.save_record(record)
            except Exception as e:
                AUDIT_WRITE_FAILURES.labels(error_type=type(e).__name__).inc()
                logger.warning(
                    "audit_write_failed",
                    record_id=str(record.id),
                    entity_name=record.entity_name,
                    attempt=attempt + 1,
                    max_attempts=self._max_write_attempts,
                    error=str(e),
                )
                continue

            AUDIT_RECORDS_WRITTEN.labels(action=record.action.value).inc()
            logger.debug(
                "audit_record_written",
                record_id=str(record.id),
                entity_name=record.entity_name,
                action=record.action.value,
            )
            return True

        logger.error(
            "audit_write_exhausted",
            record_id=str(record.id),
            entity_name=record.entity_name,
        )
        return False

    def _enqueue(self, record: AuditRecord) -> None:
        if self._pending_buffer_size == 0:
            self._drop(record, "write_failed")
            return
        self._push(_PendingRecord(record))

    def _push(self, entry: _PendingRecord) -> None:
        while len(self._pending) >= self._pending_buffer_size:
            self._drop(self._pending.popleft().record, "buffer_overflow")
        self._pending.append(entry)

    def _drop(self, record: AuditRecord, reason: str) -> None:
        logger.error(
            "audit_record_dropped",
            record_id=str(record.id),
            entity_name=record.entity_name,
            entity_id=str(record.entity_id),
            reason=reason,
        )
        self._count_drop(reason)

    def _count_drop(self, reason: str) -> None:
        AUDIT_RECORDS_DROPPED.labels(reason=reason).inc()
        self._dropped += 1


def _normalize_state(state: dict[str, Any] | None) -> dict[str, Any] | None:
    """Copy a state snapshot into plain JSON types."""
    if state is None:
        return None
    return _STATE_ADAPTER.dump_python(state, mode="json")
