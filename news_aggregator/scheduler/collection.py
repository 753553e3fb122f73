"""Periodic collect → classify → store runs with single-flight execution."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Protocol, Sequence

import structlog

from ..config import ScheduleConfig, SourceConfig
from ..engine.records import NewsItem, RawRecord, utcnow
from ..errors import ValidationError
from .apsched_adapter import APSchedulerAdapter

CONFLICT_MESSAGE = "Collection already in progress"
DURATION_HISTORY = 10


class Collector(Protocol):
    def collect_all(self, sources: Sequence[SourceConfig]) -> list[RawRecord]: ...


class BatchClassifier(Protocol):
    def classify_batch(self, records: Sequence[RawRecord]) -> list[NewsItem]: ...


class ItemSink(Protocol):
    def save_all(self, items: Sequence[NewsItem]) -> int: ...

    def __len__(self) -> int: ...


@dataclass(slots=True)
class RunResult:
    success: bool
    items_ingested: int = 0
    duration_ms: int = 0
    error: str | None = None


@dataclass(slots=True)
class RunStats:
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    total_items_ingested: int = 0
    last_run_at: datetime | None = None
    last_run_duration_ms: int = 0
    average_run_duration_ms: float = 0.0
    is_running: bool = False


class CollectionScheduler:
    """Drive pipeline runs from a timer or on demand.

    At most one run executes at a time. A run requested while another is in
    flight returns a failed :class:`RunResult` immediately instead of queueing.
    Stopping or pausing only prevents future runs; an in-flight run always
    completes.
    """

    def __init__(
        self,
        collector: Collector,
        classifier: BatchClassifier,
        store: ItemSink,
        sources: Sequence[SourceConfig],
        adapter: APSchedulerAdapter | None = None,
        logger: structlog.BoundLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.collector = collector
        self.classifier = classifier
        self.store = store
        self.sources = list(sources)
        self.logger = logger or structlog.get_logger("news_aggregator.scheduler").bind(component="scheduler")
        self.adapter = adapter or APSchedulerAdapter(logger=self.logger)
        self._clock = clock
        self._run_lock = Lock()
        self._stats_lock = Lock()
        self._stats = RunStats()
        self._durations: deque[int] = deque(maxlen=DURATION_HISTORY)
        self._config: ScheduleConfig | None = None
        self._paused = False

    # ------------------------------------------------------------------
    # Timer lifecycle
    # ------------------------------------------------------------------
    def start(self, config: ScheduleConfig | None = None) -> None:
        config = config or self._config or ScheduleConfig()
        if self.adapter.has_job():
            self.logger.warning("scheduler_already_armed_restarting")
            self.stop()
        self.adapter.start()
        try:
            self.adapter.schedule(config, self._scheduled_run)
        except (ValueError, LookupError) as exc:
            self.logger.error("scheduler_start_failed", error=str(exc))
            raise ValidationError(f"Invalid schedule configuration: {exc}") from exc
        self._config = config
        self._paused = not config.auto_start
        self.logger.info(
            "scheduler_started",
            type=config.type.value,
            value=config.value,
            timezone=config.timezone,
            auto_start=config.auto_start,
        )

    def stop(self) -> None:
        if self.adapter.remove():
            self._paused = False
            self.logger.info("scheduler_stopped")
        else:
            self.logger.warning("scheduler_stop_ignored_not_armed")

    def pause(self) -> None:
        if not self.adapter.has_job():
            return
        self.adapter.pause()
        self._paused = True
        self.logger.info("scheduler_paused")

    def resume(self) -> None:
        if not self.adapter.has_job():
            return
        self.adapter.resume()
        self._paused = False
        self.logger.info("scheduler_resumed")

    def update_config(self, config: ScheduleConfig) -> None:
        if self.adapter.has_job():
            self.logger.info("scheduler_reconfiguring")
            self.stop()
        self.start(config)

    def shutdown(self) -> None:
        if self.adapter.has_job():
            self.stop()
        self.adapter.shutdown()

    def is_active(self) -> bool:
        return self.adapter.has_job()

    @property
    def is_paused(self) -> bool:
        return self._paused and self.adapter.has_job()

    @property
    def config(self) -> ScheduleConfig | None:
        return self._config

    def next_run_time(self) -> datetime | None:
        return self.adapter.next_run_time()

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------
    def trigger_manually(self) -> RunResult:
        self.logger.info("manual_collection_triggered")
        return self._execute()

    def _scheduled_run(self) -> None:
        self._execute()

    def _execute(self) -> RunResult:
        if not self._run_lock.acquire(blocking=False):
            self.logger.warning("collection_skipped_already_running")
            return RunResult(success=False, error=CONFLICT_MESSAGE)
        try:
            started = self._clock()
            with self._stats_lock:
                self._stats.total_runs += 1
                cycle = self._stats.total_runs
            self.logger.info("collection_cycle_started", cycle=cycle)
            try:
                raw_records = self.collector.collect_all(self.sources)
                if not raw_records:
                    self.logger.warning("no_items_collected", cycle=cycle)
                    return self._complete(started, success=True, items=0)
                classified = self.classifier.classify_batch(raw_records)
                saved = self.store.save_all(classified)
            except Exception as exc:  # noqa: BLE001
                self.logger.exception("collection_cycle_failed", cycle=cycle, error=str(exc))
                return self._complete(started, success=False, items=0, error=str(exc))
            result = self._complete(started, success=True, items=saved)
            self.logger.info(
                "collection_cycle_completed",
                cycle=cycle,
                collected=len(raw_records),
                saved=saved,
                duplicates_filtered=len(raw_records) - saved,
                duration_ms=result.duration_ms,
                items_in_store=len(self.store),
            )
            return result
        finally:
            self._run_lock.release()

    def _complete(self, started: float, success: bool, items: int, error: str | None = None) -> RunResult:
        duration_ms = int(round((self._clock() - started) * 1000))
        with self._stats_lock:
            stats = self._stats
            stats.last_run_at = utcnow()
            stats.last_run_duration_ms = duration_ms
            if success:
                stats.successful_runs += 1
                stats.total_items_ingested += items
            else:
                stats.failed_runs += 1
            self._durations.append(duration_ms)
            stats.average_run_duration_ms = sum(self._durations) / len(self._durations)
        return RunResult(success=success, items_ingested=items, duration_ms=duration_ms, error=error)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def stats(self) -> RunStats:
        with self._stats_lock:
            return replace(self._stats, is_running=self.is_running)

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._stats = RunStats()
            self._durations.clear()
        self.logger.info("scheduler_stats_reset")

    def collection_history(self) -> dict[str, Any]:
        stats = self.stats()
        average_items = (
            stats.total_items_ingested / stats.successful_runs if stats.successful_runs else 0.0
        )
        return {
            "total_collections": stats.total_runs,
            "successful_collections": stats.successful_runs,
            "failed_collections": stats.failed_runs,
            "total_items_ingested": stats.total_items_ingested,
            "average_items_per_collection": round(average_items, 2),
            "last_successful_run": stats.last_run_at if stats.successful_runs else None,
        }

    def detailed_status(self) -> dict[str, Any]:
        stats = self.stats()
        success_rate = stats.successful_runs / stats.total_runs * 100 if stats.total_runs else 0.0
        return {
            "scheduler": {
                "is_active": self.is_active(),
                "is_paused": self.is_paused,
                "next_run": self.next_run_time(),
                "schedule": self._config.model_dump(mode="json") if self._config else None,
            },
            "collection": {
                "is_running": stats.is_running,
                "last_run": stats.last_run_at,
                "total_runs": stats.total_runs,
                "success_rate": round(success_rate, 2),
            },
            "storage": {"total_items": len(self.store)},
            "performance": {
                "last_run_duration_ms": stats.last_run_duration_ms,
                "average_run_duration_ms": round(stats.average_run_duration_ms),
            },
        }


__all__ = ["CONFLICT_MESSAGE", "CollectionScheduler", "RunResult", "RunStats"]
