"""Wire fetcher, coordinator, classifier, store and scheduler into one service."""

from __future__ import annotations

from typing import Any, Iterable

import structlog

from .config import Category, ConfigRepository, GlobalConfig, ScheduleConfig, SourceConfig
from .engine import (
    FeedCoordinator,
    FeedFetcher,
    FilterOptions,
    IntegrityReport,
    KeywordClassifier,
    NewsItem,
    NewsStore,
    StoreStats,
)
from .engine.coordinator import SourceFetcher
from .logging_conf import component_logger
from .scheduler import APSchedulerAdapter, CollectionScheduler, RunResult, RunStats


class Orchestrator:
    """Core surface consumed by the CLI (and any other outer layer)."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        sources: Iterable[SourceConfig] | None = None,
        fetcher: SourceFetcher | None = None,
        adapter: APSchedulerAdapter | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.logger = logger or component_logger("orchestrator")
        self._sources = list(sources) if sources is not None else config_repository.list_sources()

        settings = self.global_config
        self.fetcher = fetcher or FeedFetcher(settings.fetch, logger=component_logger("fetcher"))
        self.coordinator = FeedCoordinator(
            self.fetcher,
            max_workers=settings.fetch.max_workers,
            logger=component_logger("coordinator"),
        )
        self.classifier = KeywordClassifier(settings.classifier, logger=component_logger("classifier"))
        self.store = NewsStore(settings.storage, logger=component_logger("store"))
        self.scheduler = CollectionScheduler(
            self.coordinator,
            self.classifier,
            self.store,
            self._sources,
            adapter=adapter,
            logger=component_logger("scheduler"),
        )

    # ------------------------------------------------------------------
    def sources(self) -> list[SourceConfig]:
        return list(self._sources)

    def collect_once(self) -> RunResult:
        return self.scheduler.trigger_manually()

    def query_items(self, options: FilterOptions | None = None, **filters: Any) -> list[NewsItem]:
        if options is None:
            options = FilterOptions(**filters)
        return self.store.query(options)

    def get_item(self, item_id: str) -> NewsItem | None:
        return self.store.get(item_id)

    def category_counts(self) -> list[dict[str, Any]]:
        return [{"category": category, "count": count} for category, count in self.store.category_counts()]

    def store_stats(self) -> StoreStats:
        return self.store.stats()

    def scheduler_stats(self) -> RunStats:
        return self.scheduler.stats()

    def integrity_report(self) -> IntegrityReport:
        report = self.store.check_integrity()
        if not report.is_valid:
            self.logger.warning("integrity_issues_found", issues=len(report.issues))
        return report

    # ------------------------------------------------------------------
    def start(self, config: ScheduleConfig | None = None) -> None:
        self.scheduler.start(config or self.global_config.schedule)

    def stop(self) -> None:
        self.scheduler.stop()

    def pause(self) -> None:
        self.scheduler.pause()

    def resume(self) -> None:
        self.scheduler.resume()

    def update_config(self, config: ScheduleConfig) -> None:
        self.scheduler.update_config(config)
        self.global_config = self.global_config.model_copy(update={"schedule": config})

    def set_confidence_threshold(self, threshold: float) -> None:
        self.classifier.confidence_threshold = threshold

    def set_default_category(self, category: Category) -> None:
        self.classifier.default_category = category

    def status(self) -> dict[str, Any]:
        status = self.scheduler.detailed_status()
        stats = self.store.stats()
        status["storage"] = {
            "total_items": stats.total_items,
            "estimated_memory_bytes": stats.estimated_memory_bytes,
        }
        status["sources"] = [source.name for source in self._sources]
        return status

    def close(self) -> None:
        self.scheduler.shutdown()
        close = getattr(self.fetcher, "close", None)
        if callable(close):
            close()


__all__ = ["Orchestrator"]
