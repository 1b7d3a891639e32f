"""Restart behaviour: barrier membership survives a fresh registry."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from rendezvous.barrier.handle import WaiterState
from rendezvous.barrier.models import BarrierRecord, BarrierTableDocument
from rendezvous.barrier.registry import BarrierRegistry
from rendezvous.barrier.store import JsonFileBarrierStore, SqliteBarrierStore
from rendezvous.orchestration.step import RendezvousStep, RendezvousStepExecution


@pytest.fixture(params=["json", "sqlite"])
def durable_store(request, tmp_path):
    if request.param == "json":
        return JsonFileBarrierStore(tmp_path / "rendezvous-barriers.json")
    return SqliteBarrierStore(tmp_path / "rendezvous-barriers.db")


class TestRestart:
    def test_waiting_participant_survives_restart(self, durable_store, make_handle):
        BarrierRegistry(durable_store).enter("a", 2, "n1", make_handle())

        restarted = BarrierRegistry(durable_store)
        assert restarted.snapshot() == {"a": BarrierRecord(quorum=2, holding=["n1"])}

    def test_restored_waiter_counts_toward_quorum(self, durable_store, make_handle):
        BarrierRegistry(durable_store).enter("a", 2, "n1", make_handle())

        restarted = BarrierRegistry(durable_store)
        n2 = make_handle()
        with capture_logs() as logs:
            restarted.enter("a", 2, "n2", n2)

        assert n2.messages[-1] == "Critical mass reached. Proceeding."
        assert n2.is_ready()
        detached = [e for e in logs if e["event"] == "handle.detached_resolved"]
        assert [e["waiter_id"] for e in detached] == ["n1"]
        assert detached[0]["log_level"] == "warning"
        assert durable_store.load().barriers == {}

    def test_reentry_after_restart_replaces_placeholder(self, durable_store, make_handle):
        BarrierRegistry(durable_store).enter("a", 3, "n1", make_handle())

        restarted = BarrierRegistry(durable_store)
        n1 = make_handle()
        with capture_logs() as logs:
            restarted.enter("a", 3, "n1", n1)
            restarted.enter("a", 3, "n2", make_handle())
            restarted.enter("a", 3, "n3", make_handle())

        assert n1.messages[1] == "Waiting on rendezvous 1 of 3"
        assert n1.state == WaiterState.RESOLVED
        assert n1.resolve_calls == 1
        assert not any(e["event"] == "handle.detached_resolved" for e in logs)

    def test_preexisting_document_is_loaded(self, durable_store, make_handle):
        durable_store.save(
            BarrierTableDocument(
                barriers={
                    "a": BarrierRecord(quorum=2, holding=["n1"]),
                    "empty": BarrierRecord(quorum=2, holding=[]),
                }
            )
        )

        registry = BarrierRegistry(durable_store)
        assert list(registry.snapshot()) == ["a"]


class TestReleasedBeforeReentry:
    """A restored waiter released in its absence is released again on return."""

    def test_reentry_after_release_resolves_immediately(self, durable_store, make_handle):
        BarrierRegistry(durable_store).enter("a", 2, "n1", make_handle())
        restarted = BarrierRegistry(durable_store)
        restarted.enter("a", 2, "n2", make_handle())

        n1 = make_handle()
        restarted.enter("a", 2, "n1", n1)

        assert n1.messages == [
            "Reached rendezvous point a",
            "Critical mass reached. Proceeding.",
        ]
        assert n1.outcome.success
        assert n1.resolve_calls == 1
        assert restarted.get("a") is None

    def test_released_ids_survive_a_second_restart(self, durable_store, make_handle):
        BarrierRegistry(durable_store).enter("a", 2, "n1", make_handle())
        BarrierRegistry(durable_store).enter("a", 2, "n2", make_handle())
        assert durable_store.load().released == {"a": ["n1"]}

        n1 = make_handle()
        BarrierRegistry(durable_store).enter("a", 2, "n1", n1)

        assert n1.is_ready()
        assert durable_store.load().released == {}

    def test_released_id_is_consumed_once(self, durable_store, make_handle):
        BarrierRegistry(durable_store).enter("a", 2, "n1", make_handle())
        restarted = BarrierRegistry(durable_store)
        restarted.enter("a", 2, "n2", make_handle())
        restarted.enter("a", 2, "n1", make_handle())

        again = make_handle()
        restarted.enter("a", 2, "n1", again)

        assert again.messages[-1] == "Waiting on rendezvous 1 of 2"
        assert not again.is_ready()


class TestStopAfterRestart:
    def test_stop_reclaims_restored_slot(self, durable_store, make_handle):
        BarrierRegistry(durable_store).enter("a", 2, "n1", make_handle())
        restarted = BarrierRegistry(durable_store)

        execution = RendezvousStepExecution(RendezvousStep("a", 2), "n1", registry=restarted)
        execution.stop(RuntimeError("host aborted"))

        assert restarted.get("a") is None
        assert durable_store.load().barriers == {}

        n2 = make_handle()
        restarted.enter("a", 2, "n2", n2)
        assert n2.messages[-1] == "Waiting on rendezvous 1 of 2"
        assert not n2.is_ready()

    def test_stop_forgets_pending_release(self, durable_store, make_handle):
        BarrierRegistry(durable_store).enter("a", 2, "n1", make_handle())
        restarted = BarrierRegistry(durable_store)
        restarted.enter("a", 2, "n2", make_handle())

        restarted.stop("n1")

        assert durable_store.load().released == {}
