"""Search cycle controller wiring planner, search, dedup and the item pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from pydantic import TypeAdapter

from .config import ConfigRepository, RelisterConfig
from .engine import (
    Candidate,
    DedupFilter,
    ItemPipeline,
    Outcome,
    RateLimiter,
    RecordKeys,
    RecordWriter,
    SearchCriteria,
    admit,
    unique_by_id,
)
from .errors import RemoteInvocationError
from .infra import (
    DynamoRecordStore,
    RecordStore,
    RemoteInvoker,
    SQLiteManager,
    SQLiteRecordStore,
    build_transport,
)
from .logging_conf import component_logger, configure_logging
from .shutdown import ShutdownCoordinator

_candidates = TypeAdapter(list[Candidate])


@dataclass(slots=True)
class CycleSummary:
    """What one pass of the loop did."""

    fetched: int = 0
    unique: int = 0
    admitted: int = 0
    queued: int = 0
    listed: int = 0
    excluded: int = 0
    skipped: int = 0
    aborted: str | None = None
    outcomes: list[tuple[str, str]] = field(default_factory=list)


class SearchCycleController:
    """Top-level loop: plan, search, filter, then process items one at a time."""

    def __init__(
        self,
        config: RelisterConfig,
        invoker: RemoteInvoker,
        rate_limiter: RateLimiter,
        dedup: DedupFilter,
        pipeline: ItemPipeline,
        shutdown: ShutdownCoordinator,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.invoker = invoker
        self.rate_limiter = rate_limiter
        self.dedup = dedup
        self.pipeline = pipeline
        self.shutdown = shutdown
        self.sleep = sleep
        self.now = now
        self.logger = component_logger("orchestrator")

    def run(self, max_cycles: int | None = None) -> int:
        """Loop until shutdown (or ``max_cycles``); return cycles started."""

        cycles = 0
        while True:
            if self.shutdown.stop_requested:
                self.logger.info("search_loop_stopped", reason="shutdown")
                break
            if max_cycles is not None and cycles >= max_cycles:
                break
            cycles += 1
            self.logger.info("cycle_started", cycle=cycles)
            self.run_cycle()
        return cycles

    def run_cycle(self) -> CycleSummary:
        summary = CycleSummary()
        functions = self.config.functions
        criteria = self.invoker.call(functions.search_planner, {}, SearchCriteria)
        self.logger.info("search_criteria", criteria=criteria.forward())

        self.rate_limiter.source.wait()
        try:
            raw = self.invoker.invoke(functions.candidate_search, criteria.forward())
        except RemoteInvocationError as exc:
            self.logger.warning(
                "transport_failure", function=functions.candidate_search, stage="search", error=str(exc)
            )
            self.invoker.refresh(functions.candidate_search)
            self.sleep(self.config.rate_limits.transport_cooldown_seconds)
            summary.aborted = "search_failed"
            return summary
        self.rate_limiter.source.mark()

        found = _candidates.validate_python(raw)
        summary.fetched = len(found)
        unique = unique_by_id(found)
        summary.unique = len(unique)
        admitted = admit(
            unique,
            item_type=self.config.cycle.source_item_type,
            min_age_seconds=self.config.cycle.min_candidate_age_seconds,
            now_seconds=self.now(),
        )
        summary.admitted = len(admitted)
        queue = self.dedup.filter(admitted)
        summary.queued = len(queue)
        self.logger.info(
            "candidates_filtered",
            fetched=summary.fetched,
            unique=summary.unique,
            admitted=summary.admitted,
            queued=summary.queued,
            ids=[c.id for c in queue],
        )

        limit = self.config.cycle.max_listed_per_cycle
        for candidate in queue:
            if summary.listed >= limit:
                self.logger.info("cycle_limit_reached", limit=limit)
                break
            if self.shutdown.stop_requested:
                self.logger.info("item_loop_stopped", reason="shutdown")
                summary.aborted = "shutdown"
                break
            result = self.pipeline.process(candidate, criteria.store)
            summary.outcomes.append((result.item_id, result.outcome.value))
            if result.outcome is Outcome.LISTED:
                summary.listed += 1
            elif result.outcome is Outcome.EXCLUDED:
                summary.excluded += 1
            else:
                summary.skipped += 1
        self.logger.info(
            "cycle_finished",
            listed=summary.listed,
            excluded=summary.excluded,
            skipped=summary.skipped,
        )
        return summary


@dataclass(slots=True)
class Runtime:
    """Fully wired collaborators for one process."""

    config: RelisterConfig
    invoker: RemoteInvoker
    store: RecordStore
    writer: RecordWriter
    pipeline: ItemPipeline
    controller: SearchCycleController
    shutdown: ShutdownCoordinator


def build_store(config: RelisterConfig, sqlite_path: Path) -> RecordStore:
    store_cfg = config.store
    if store_cfg.backend == "sqlite":
        return SQLiteRecordStore(SQLiteManager(), sqlite_path, batch_read_limit=store_cfg.batch_read_limit)
    return DynamoRecordStore(
        store_cfg.table_name,
        region=store_cfg.region,
        batch_read_limit=store_cfg.batch_read_limit,
    )


def build_runtime(
    repository: ConfigRepository,
    *,
    invoker: RemoteInvoker | None = None,
    store: RecordStore | None = None,
    shutdown: ShutdownCoordinator | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Runtime:
    config = repository.load_validated()
    configure_logging()
    invoker = invoker or RemoteInvoker(build_transport(config.transport))
    store = store or build_store(config, repository.sqlite_path(config))
    keys = RecordKeys(config.store, config.cycle)
    writer = RecordWriter(store, keys, tz=config.store.timezone)
    rate_limiter = RateLimiter(config.rate_limits, sleep=sleep)
    pipeline = ItemPipeline(config, invoker, rate_limiter, writer, sleep=sleep)
    shutdown = shutdown or ShutdownCoordinator()
    controller = SearchCycleController(
        config,
        invoker,
        rate_limiter,
        DedupFilter(store, keys),
        pipeline,
        shutdown,
        sleep=sleep,
    )
    return Runtime(
        config=config,
        invoker=invoker,
        store=store,
        writer=writer,
        pipeline=pipeline,
        controller=controller,
        shutdown=shutdown,
    )


__all__ = ["CycleSummary", "Runtime", "SearchCycleController", "build_runtime", "build_store"]
