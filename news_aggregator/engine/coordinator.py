"""Parallel fan-out of feed fetches with partial-failure tolerance."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Protocol, Sequence

import structlog

from ..config import SourceConfig
from .records import RawRecord


class SourceFetcher(Protocol):
    def fetch(self, source: SourceConfig) -> list[RawRecord]:
        """Return the raw records of one source or raise."""


@dataclass(slots=True)
class SourceOutcome:
    source_name: str
    items: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class CollectionReport:
    """Per-source results of the most recent ``collect_all`` call."""

    outcomes: list[SourceOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)

    @property
    def total_items(self) -> int:
        return sum(outcome.items for outcome in self.outcomes)


class FeedCoordinator:
    """Fetch every source concurrently and merge the successful results."""

    def __init__(
        self,
        fetcher: SourceFetcher,
        max_workers: int | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.max_workers = max_workers
        self.logger = logger or structlog.get_logger("news_aggregator.coordinator")
        self.last_report = CollectionReport()

    def collect_all(self, sources: Sequence[SourceConfig]) -> list[RawRecord]:
        report = CollectionReport()
        self.last_report = report
        if not sources:
            self.logger.warning("no_sources_configured")
            return []

        workers = self.max_workers or len(sources)
        self.logger.info("collection_started", sources=len(sources), workers=workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch") as executor:
            futures: list[Future[list[RawRecord]]] = [
                executor.submit(self.fetcher.fetch, source) for source in sources
            ]
            wait(futures)

        merged: list[RawRecord] = []
        for source, future in zip(sources, futures):
            try:
                records = future.result()
            except Exception as exc:  # noqa: BLE001
                report.outcomes.append(SourceOutcome(source_name=source.name, error=str(exc)))
                self.logger.error("source_failed", source=source.name, error=str(exc))
                continue
            merged.extend(records)
            report.outcomes.append(SourceOutcome(source_name=source.name, items=len(records)))
            self.logger.info("source_collected", source=source.name, items=len(records))

        self.logger.info(
            "collection_finished",
            succeeded=report.succeeded,
            failed=report.failed,
            items=len(merged),
        )
        return merged


__all__ = ["CollectionReport", "FeedCoordinator", "SourceFetcher", "SourceOutcome"]
