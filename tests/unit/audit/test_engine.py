"""Tests for AuditTrailEngine."""

import asyncio
import json
from uuid import UUID, uuid4

import pytest
from prometheus_client import REGISTRY

from custos.audit.engine import AuditTrailEngine
from custos.audit.models import AuditAction, AuditFilter, AuditRecord, MutationEvent
from custos.audit.stores.inmemory import InMemoryAuditStore
from custos.db.errors import ConnectionError
from custos.errors import InvalidAuditShape
from custos.identity.models import ActorRef, ResolvedActor, Universe
from custos.identity.service import IdentityModel
from custos.identity.stores.inmemory import InMemoryIdentityStore


class FlakyAuditStore(InMemoryAuditStore):
    """In-memory store that fails a given number of writes, or all of them."""

    def __init__(self, failures: int = 0, down: bool = False) -> None:
        super().__init__()
        self.failures = failures
        self.down = down
        self.attempts = 0

    async def save_record(self, record: AuditRecord) -> UUID:
        self.attempts += 1
        if self.down or self.failures > 0:
            self.failures = max(self.failures - 1, 0)
            raise ConnectionError("connection refused")
        return await super().save_record(record)


class BrokenIdentityStore(InMemoryIdentityStore):
    async def get_actor(self, actor_id):
        raise ConnectionError("identity database unavailable")


class FakeTransaction:
    """Stands in for the caller's database transaction around a mutation."""

    def __init__(self) -> None:
        self.rows: dict[UUID, dict] = {}
        self.committed = False

    async def __aenter__(self) -> "FakeTransaction":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self.committed = exc_type is None
        return False


def dropped(reason: str) -> float:
    return REGISTRY.get_sample_value(
        "custos_audit_records_dropped_total", {"reason": reason}
    ) or 0.0


@pytest.fixture
def engine(audit_store, identity, registry) -> AuditTrailEngine:
    return AuditTrailEngine(audit_store, identity, registry)


def task_state(company_id: UUID, **fields) -> dict:
    return {"title": "Follow up", "status": "open", "company_id": str(company_id), **fields}


class TestAttribution:
    """Actor and company attribution."""

    async def test_actor_from_registered_payload_field(
        self, engine, audit_store, collaborator, company
    ):
        entity_id = uuid4()
        record = await engine.record(
            None,
            AuditAction.CREATED,
            "tasks.task",
            entity_id,
            new_state=task_state(company.id, responsible_user_id=str(collaborator.id)),
        )

        assert record is not None
        assert record.actor_id == collaborator.id
        assert record.company_id == company.id
        assert await audit_store.get_record(record.id) == record

    async def test_field_priority(self, engine, owner, collaborator, company):
        record = await engine.record(
            None,
            AuditAction.CREATED,
            "tasks.task",
            uuid4(),
            new_state=task_state(
                company.id,
                created_by_id=str(owner.id),
                user_id=str(collaborator.id),
            ),
        )

        assert record.actor_id == collaborator.id

    async def test_explicit_actor_wins(self, engine, owner, collaborator, company):
        record = await engine.record(
            ActorRef(id=owner.id),
            AuditAction.CREATED,
            "tasks.task",
            uuid4(),
            new_state=task_state(company.id, responsible_user_id=str(collaborator.id)),
        )

        assert record.actor_id == owner.id

    async def test_resolved_actor_used_as_is(self, engine, company):
        actor = ResolvedActor(
            id=uuid4(), universe=Universe.INTERNAL, role="admin", company_id=None
        )
        record = await engine.record(
            actor, AuditAction.CREATED, "tasks.task", uuid4(), new_state=task_state(company.id)
        )

        assert record.actor_id == actor.id
        assert record.company_id == company.id

    async def test_deleted_reads_prior_state(self, engine, supervisor, company):
        prior = task_state(company.id, created_by_id=str(supervisor.id))

        record = await engine.record(
            None, AuditAction.DELETED, "tasks.task", uuid4(), prior_state=prior
        )

        assert record.actor_id == supervisor.id
        assert record.company_id == company.id
        assert record.new_state is None

    async def test_updated_reads_new_state(self, engine, owner, collaborator, company):
        record = await engine.record(
            None,
            AuditAction.UPDATED,
            "tasks.task",
            uuid4(),
            prior_state=task_state(company.id, responsible_user_id=str(owner.id)),
            new_state=task_state(company.id, responsible_user_id=str(collaborator.id)),
        )

        assert record.actor_id == collaborator.id

    async def test_unregistered_entity_not_sniffed(self, engine, collaborator, company):
        record = await engine.record(
            None,
            AuditAction.CREATED,
            "crm.unmapped",
            uuid4(),
            new_state={"user_id": str(collaborator.id), "company_id": str(company.id)},
        )

        assert record is not None
        assert record.actor_id is None
        assert record.company_id is None

    async def test_unresolvable_actor_recorded_as_absent(self, engine, company):
        record = await engine.record(
            None,
            AuditAction.CREATED,
            "tasks.task",
            uuid4(),
            new_state=task_state(company.id, user_id=str(uuid4())),
        )

        assert record is not None
        assert record.actor_id is None
        assert record.company_id == company.id

    async def test_unresolvable_explicit_actor_recorded_as_absent(self, engine, company):
        record = await engine.record(
            uuid4(), AuditAction.CREATED, "tasks.task", uuid4(), new_state=task_state(company.id)
        )

        assert record.actor_id is None

    async def test_company_falls_back_to_actor_company(self, engine, supervisor, company):
        record = await engine.record(
            None,
            AuditAction.CREATED,
            "plans.plan",
            uuid4(),
            new_state={"name": "Gold", "created_by_id": str(supervisor.id)},
        )

        assert record.actor_id == supervisor.id
        assert record.company_id == company.id

    async def test_internal_actor_has_no_company_fallback(self, engine, staff):
        record = await engine.record(
            staff.id, AuditAction.CREATED, "plans.plan", uuid4(), new_state={"name": "Gold"}
        )

        assert record.actor_id == staff.id
        assert record.company_id is None

    async def test_identity_failure_still_records(self, audit_store, registry, company):
        engine = AuditTrailEngine(audit_store, IdentityModel(BrokenIdentityStore()), registry)

        record = await engine.record(
            None,
            AuditAction.CREATED,
            "tasks.task",
            uuid4(),
            new_state=task_state(company.id, user_id=str(uuid4())),
        )

        assert record is not None
        assert record.actor_id is None
        assert await audit_store.count_records(AuditFilter()) == 1


class TestShape:
    """State presence must match the action."""

    @pytest.mark.parametrize(
        ("action", "prior", "new"),
        [
            (AuditAction.CREATED, {"a": 1}, {"a": 2}),
            (AuditAction.CREATED, {"a": 1}, None),
            (AuditAction.DELETED, {"a": 1}, {"a": 2}),
            (AuditAction.DELETED, None, {"a": 2}),
            (AuditAction.UPDATED, None, {"a": 2}),
            (AuditAction.UPDATED, {"a": 1}, None),
        ],
    )
    def test_validate_shape_rejects(self, action, prior, new):
        with pytest.raises(InvalidAuditShape):
            AuditTrailEngine.validate_shape(action, prior, new)

    @pytest.mark.parametrize(
        ("action", "prior", "new"),
        [
            (AuditAction.CREATED, None, {"a": 1}),
            (AuditAction.UPDATED, {"a": 1}, {"a": 2}),
            (AuditAction.DELETED, {"a": 1}, None),
        ],
    )
    def test_validate_shape_accepts(self, action, prior, new):
        AuditTrailEngine.validate_shape(action, prior, new)

    async def test_record_swallows_shape_error(self, engine, audit_store):
        before = dropped("invalid_shape")

        result = await engine.record(
            None, AuditAction.CREATED, "tasks.task", uuid4(), prior_state={"title": "x"}
        )

        assert result is None
        assert engine.dropped_count == 1
        assert dropped("invalid_shape") == before + 1
        assert await audit_store.count_records(AuditFilter()) == 0

    async def test_build_record_raises_shape_error(self, engine):
        with pytest.raises(InvalidAuditShape):
            await engine.build_record(
                None, AuditAction.CREATED, "tasks.task", uuid4(), prior_state={"title": "x"}
            )

    async def test_record_swallows_invalid_entity_name(self, engine):
        result = await engine.record(None, AuditAction.CREATED, "", uuid4(), new_state={})

        assert result is None
        assert engine.dropped_count == 1


class TestFailSoft:
    """Audit failures never reach the mutation that triggered them."""

    async def test_shape_error_does_not_abort_outer_transaction(self, engine):
        task_id = uuid4()
        tx = FakeTransaction()

        async with tx:
            tx.rows[task_id] = {"title": "New"}
            await engine.record(
                None, AuditAction.CREATED, "tasks.task", task_id, prior_state={"title": "New"}
            )

        assert tx.committed
        assert task_id in tx.rows

    async def test_storage_failure_does_not_abort_outer_transaction(
        self, identity, registry, company
    ):
        engine = AuditTrailEngine(FlakyAuditStore(down=True), identity, registry)
        task_id = uuid4()
        tx = FakeTransaction()

        async with tx:
            tx.rows[task_id] = task_state(company.id)
            result = await engine.record(
                None, AuditAction.CREATED, "tasks.task", task_id, new_state=tx.rows[task_id]
            )

        assert result is None
        assert tx.committed
        assert engine.pending_count == 1


class TestRetryAndBuffer:
    """Inline retries, the pending buffer and flush."""

    async def test_inline_retry_succeeds(self, identity, registry, company):
        store = FlakyAuditStore(failures=2)
        engine = AuditTrailEngine(store, identity, registry, max_write_attempts=3)

        record = await engine.record(
            None, AuditAction.CREATED, "tasks.task", uuid4(), new_state=task_state(company.id)
        )

        assert record is not None
        assert store.attempts == 3
        assert engine.pending_count == 0

    async def test_exhausted_write_is_buffered_then_flushed(self, identity, registry, company):
        store = FlakyAuditStore(down=True)
        engine = AuditTrailEngine(store, identity, registry, max_write_attempts=2)
        entity_id = uuid4()

        assert await engine.record(
            None, AuditAction.CREATED, "tasks.task", entity_id, new_state=task_state(company.id)
        ) is None
        assert store.attempts == 2
        assert engine.pending_count == 1

        store.down = False
        assert await engine.flush() == 1

        assert engine.pending_count == 0
        assert engine.dropped_count == 0
        records = await store.query_records(AuditFilter(entity_id=entity_id))
        assert len(records) == 1

    async def test_overflow_drops_oldest(self, identity, registry, company):
        store = FlakyAuditStore(down=True)
        engine = AuditTrailEngine(
            store, identity, registry, max_write_attempts=1, pending_buffer_size=2
        )
        before = dropped("buffer_overflow")
        entity_ids = [uuid4() for _ in range(3)]

        for entity_id in entity_ids:
            await engine.record(
                None, AuditAction.CREATED, "tasks.task", entity_id,
                new_state=task_state(company.id),
            )

        assert engine.pending_count == 2
        assert engine.dropped_count == 1
        assert dropped("buffer_overflow") == before + 1

        store.down = False
        await engine.flush()
        stored = {r.entity_id for r in await store.query_records(AuditFilter())}
        assert stored == set(entity_ids[1:])

    async def test_zero_buffer_drops_immediately(self, identity, registry, company):
        engine = AuditTrailEngine(
            FlakyAuditStore(down=True), identity, registry,
            max_write_attempts=1, pending_buffer_size=0,
        )
        before = dropped("write_failed")

        await engine.record(
            None, AuditAction.CREATED, "tasks.task", uuid4(), new_state=task_state(company.id)
        )

        assert engine.pending_count == 0
        assert engine.dropped_count == 1
        assert dropped("write_failed") == before + 1

    async def test_flush_gives_up_after_max_attempts(self, identity, registry, company):
        engine = AuditTrailEngine(
            FlakyAuditStore(down=True), identity, registry,
            max_write_attempts=1, max_flush_attempts=2,
        )
        before = dropped("retries_exhausted")
        await engine.record(
            None, AuditAction.CREATED, "tasks.task", uuid4(), new_state=task_state(company.id)
        )

        assert await engine.flush() == 0
        assert engine.pending_count == 1
        assert await engine.flush() == 0

        assert engine.pending_count == 0
        assert engine.dropped_count == 1
        assert dropped("retries_exhausted") == before + 1

    async def test_successful_write_drains_pending(self, identity, registry, company):
        store = FlakyAuditStore(down=True)
        engine = AuditTrailEngine(store, identity, registry, max_write_attempts=1)
        await engine.record(
            None, AuditAction.CREATED, "tasks.task", uuid4(), new_state=task_state(company.id)
        )
        assert engine.pending_count == 1

        store.down = False
        await engine.record(
            None, AuditAction.CREATED, "tasks.task", uuid4(), new_state=task_state(company.id)
        )

        assert engine.pending_count == 0
        assert await store.count_records(AuditFilter()) == 2

    async def test_flush_with_empty_buffer(self, engine):
        assert await engine.flush() == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_write_attempts": 0},
            {"pending_buffer_size": -1},
            {"max_flush_attempts": 0},
        ],
    )
    def test_invalid_limits_rejected(self, audit_store, identity, kwargs):
        with pytest.raises(ValueError):
            AuditTrailEngine(audit_store, identity, **kwargs)


class TestRecording:
    """General recording behavior."""

    async def test_disabled_engine_records_nothing(self, audit_store, identity, registry):
        engine = AuditTrailEngine(audit_store, identity, registry, enabled=False)

        assert await engine.record(
            None, AuditAction.CREATED, "tasks.task", uuid4(), new_state={"title": "x"}
        ) is None
        assert await audit_store.count_records(AuditFilter()) == 0

    async def test_record_event(self, engine, owner, company):
        event = MutationEvent(
            entity_name="tasks.task_comment",
            entity_id=uuid4(),
            action=AuditAction.CREATED,
            new_state={"body": "Done", "user_id": str(owner.id), "company_id": str(company.id)},
        )

        record = await engine.record_event(event)

        assert record.entity_name == "tasks.task_comment"
        assert record.entity_id == event.entity_id
        assert record.actor_id == owner.id

    async def test_states_round_trip_exactly(self, engine, audit_store, company):
        entity_id = uuid4()
        prior = {"title": "Café", "tags": ["a", "b"], "estimate": 1.5, "meta": {"n": None}}
        new = {"title": "Café ☕", "tags": [], "estimate": 2, "meta": {"n": True}}

        await engine.record(
            None, AuditAction.UPDATED, "tasks.task", entity_id, prior_state=prior, new_state=new
        )

        records = await audit_store.query_records(AuditFilter(entity_id=entity_id))
        assert len(records) == 1
        assert records[0].prior_state == prior
        assert records[0].new_state == new
        assert json.dumps(records[0].new_state) == json.dumps(new)

    async def test_state_copied_from_caller(self, engine, company):
        state = task_state(company.id)
        record = await engine.record(
            None, AuditAction.CREATED, "tasks.task", uuid4(), new_state=state
        )

        state["title"] = "mutated later"

        assert record.new_state["title"] == "Follow up"

    async def test_non_json_values_normalized(self, engine):
        due = uuid4()
        record = await engine.record(
            None, AuditAction.CREATED, "crm.unmapped", uuid4(), new_state={"ref": due}
        )

        assert record.new_state == {"ref": str(due)}

    async def test_concurrent_mutations_get_independent_records(self, engine, audit_store):
        entity_id = uuid4()

        results = await asyncio.gather(
            *[
                engine.record(
                    None, AuditAction.UPDATED, "tasks.task", entity_id,
                    prior_state={"n": i}, new_state={"n": i + 1},
                )
                for i in range(10)
            ]
        )

        assert len({r.id for r in results}) == 10
        assert await audit_store.count_records(AuditFilter(entity_id=entity_id)) == 10
