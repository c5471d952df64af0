from __future__ import annotations

import pytest

from conftest import FUNCTION_REFS, lambda_error
from relister.engine import DedupFilter
from relister.infra import UpsertRequest
from relister.orchestrator import SearchCycleController
from relister.shutdown import ShutdownCoordinator

NOW = 1_700_000_000


def found(item_id: str, *, item_type: str = "ITEM_TYPE_MERCARI", age: int = 90_000) -> dict:
    return {"id": item_id, "item_type": item_type, "created": NOW - age}


@pytest.fixture
def shutdown() -> ShutdownCoordinator:
    return ShutdownCoordinator()


@pytest.fixture
def controller(config, invoker, rate_limiter, record_store, record_keys, pipeline, shutdown, fake_clock, transport):
    transport.always(FUNCTION_REFS["search_planner"], {"query": "figure", "store": "X"})
    return SearchCycleController(
        config,
        invoker,
        rate_limiter,
        DedupFilter(record_store, record_keys),
        pipeline,
        shutdown,
        sleep=fake_clock.sleep,
        now=lambda: NOW,
    )


def test_cycle_filters_then_processes(controller, happy_path, transport, record_store, record_keys) -> None:
    happy_path()
    record_store.upsert(UpsertRequest(key=record_keys.key("banned"), overwrite={"isDraft": True}))
    transport.script(
        FUNCTION_REFS["candidate_search"],
        [
            found("a"),
            found("a"),
            found("banned"),
            found("young", age=3_600),
            found("shop", item_type="ITEM_TYPE_BEYOND"),
            found("b"),
        ],
    )
    summary = controller.run_cycle()

    assert summary.fetched == 6
    assert summary.unique == 5
    assert summary.admitted == 3
    assert summary.queued == 2
    assert summary.listed == 2
    assert [item for item, _ in summary.outcomes] == ["a", "b"]
    search = transport.calls_to(FUNCTION_REFS["candidate_search"])[0]
    assert search == {"query": "figure", "store": "X"}


def test_search_failure_aborts_cycle(controller, happy_path, transport, fake_clock) -> None:
    happy_path()
    transport.script(FUNCTION_REFS["candidate_search"], lambda_error())
    summary = controller.run_cycle()

    assert summary.aborted == "search_failed"
    assert transport.refreshed == [FUNCTION_REFS["candidate_search"]]
    assert fake_clock.sleeps == [10.0]
    assert transport.calls_to(FUNCTION_REFS["item_detail"]) == []


def test_cycle_stops_after_listing_cap(controller, happy_path, transport) -> None:
    happy_path()
    transport.script(FUNCTION_REFS["candidate_search"], [found(f"c{i}") for i in range(12)])
    summary = controller.run_cycle()

    assert summary.listed == 10
    assert len(transport.calls_to(FUNCTION_REFS["publisher"])) == 10
    assert len(transport.calls_to(FUNCTION_REFS["item_detail"])) == 10


def test_exclusions_do_not_count_towards_cap(controller, happy_path, transport) -> None:
    happy_path()
    transport.script(FUNCTION_REFS["candidate_search"], [found(f"c{i}") for i in range(12)])
    transport.script(FUNCTION_REFS["eligibility"], {"isEligible": False}, {"isEligible": False})
    summary = controller.run_cycle()

    assert summary.excluded == 2
    assert summary.listed == 10
    assert len(transport.calls_to(FUNCTION_REFS["item_detail"])) == 12


def test_shutdown_between_items(controller, happy_path, transport, shutdown) -> None:
    happy_path()
    transport.script(FUNCTION_REFS["candidate_search"], [found("a"), found("b"), found("c")])

    def publish_then_stop(payload):
        shutdown.request_stop("test")
        return {"listingId": "L-a"}

    transport.script(FUNCTION_REFS["publisher"], publish_then_stop)
    summary = controller.run_cycle()

    assert summary.aborted == "shutdown"
    assert summary.listed == 1
    assert len(transport.calls_to(FUNCTION_REFS["item_detail"])) == 1


def test_run_honours_max_cycles(controller, transport) -> None:
    transport.always(FUNCTION_REFS["candidate_search"], [])
    assert controller.run(max_cycles=3) == 3
    assert len(transport.calls_to(FUNCTION_REFS["search_planner"])) == 3


def test_run_returns_immediately_after_shutdown(controller, transport, shutdown) -> None:
    shutdown.request_stop("test")
    assert controller.run() == 0
    assert transport.calls == []
