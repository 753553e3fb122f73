"""Bounded, deduplicating in-memory news store."""

from __future__ import annotations

import dataclasses
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import RLock
from typing import Any, Iterable

import structlog

from ..config import Category, StorageSettings
from .dedup import DuplicateDetector
from .records import FilterOptions, NewsItem, ensure_utc, utcnow

_UPDATABLE_FIELDS = frozenset(f.name for f in dataclasses.fields(NewsItem))
_OBJECT_OVERHEAD_BYTES = 200
_CATEGORY_LABELS = frozenset(category.value for category in Category)


@dataclass(slots=True)
class StoreStats:
    total_items: int = 0
    category_counts: dict[str, int] = field(default_factory=dict)
    source_counts: dict[str, int] = field(default_factory=dict)
    oldest_item: datetime | None = None
    newest_item: datetime | None = None
    estimated_memory_bytes: int = 0


@dataclass(slots=True)
class IntegrityReport:
    is_valid: bool
    issues: list[str]
    total_items: int
    valid_items: int


class NewsStore:
    """Keep at most ``max_items`` items no older than ``max_age_days``.

    Every mutation runs under one re-entrant lock; readers take the same
    lock and receive copies, so callers never observe a half-applied save.
    """

    def __init__(
        self,
        settings: StorageSettings | None = None,
        detector: DuplicateDetector | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        settings = settings or StorageSettings()
        self.max_items = settings.max_items
        self.max_age_days = settings.max_age_days
        self.detector = detector or DuplicateDetector()
        self.logger = logger or structlog.get_logger("news_aggregator.store")
        self._items: dict[str, NewsItem] = {}
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def save(self, item: NewsItem) -> bool:
        """Store ``item`` unless it duplicates an existing one."""

        with self._lock:
            snapshot = dict(self._items)
            try:
                item = _normalised(item)
                result = self.detector.check(item, self._items)
                if result.is_duplicate:
                    self.logger.debug(
                        "duplicate_skipped",
                        id=item.id,
                        title=item.title,
                        by_id=result.id_duplicate,
                        by_link=result.link_duplicate,
                    )
                    return False
                self._items[item.id] = item
                self._purge_expired()
                self._enforce_capacity()
            except Exception as exc:  # noqa: BLE001
                # a failed save leaves the store exactly as it was
                self._items = snapshot
                self.logger.error("save_failed", id=getattr(item, "id", None), error=str(exc))
                return False
        self.logger.debug("item_saved", id=item.id, title=item.title)
        return True

    def save_all(self, items: Iterable[NewsItem]) -> int:
        saved = 0
        total = 0
        for item in items:
            total += 1
            if self.save(item):
                saved += 1
        self.logger.info("batch_saved", saved=saved, total=total)
        return saved

    def update(self, item_id: str, **changes: Any) -> bool:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            self.logger.warning("update_rejected", id=item_id, unknown_fields=sorted(unknown))
            return False
        try:
            with self._lock:
                existing = self._items.get(item_id)
                if existing is None:
                    self.logger.warning("update_not_found", id=item_id)
                    return False
                self._items[item_id] = _normalised(dataclasses.replace(existing, **changes))
        except Exception as exc:  # noqa: BLE001
            self.logger.error("update_failed", id=item_id, error=str(exc))
            return False
        self.logger.debug("item_updated", id=item_id, fields=sorted(changes))
        return True

    def delete(self, item_id: str) -> bool:
        try:
            with self._lock:
                removed = self._items.pop(item_id, None)
        except Exception as exc:  # noqa: BLE001
            self.logger.error("delete_failed", id=item_id, error=str(exc))
            return False
        if removed is None:
            self.logger.warning("delete_not_found", id=item_id)
            return False
        self.logger.debug("item_deleted", id=item_id)
        return True

    def clear(self) -> int:
        with self._lock:
            count = len(self._items)
            self._items.clear()
        self.logger.info("store_cleared", removed=count)
        return count

    def _purge_expired(self) -> None:
        cutoff = utcnow() - timedelta(days=self.max_age_days)
        expired = [item_id for item_id, item in self._items.items() if item.published_at < cutoff]
        for item_id in expired:
            del self._items[item_id]
        if expired:
            self.logger.info("expired_items_removed", removed=len(expired), max_age_days=self.max_age_days)

    def _enforce_capacity(self) -> None:
        while len(self._items) > self.max_items:
            oldest = min(self._items.values(), key=lambda item: item.published_at)
            del self._items[oldest.id]
            self.logger.info("capacity_eviction", id=oldest.id, max_items=self.max_items)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, item_id: str) -> NewsItem | None:
        with self._lock:
            item = self._items.get(item_id)
            return dataclasses.replace(item) if item is not None else None

    def query(self, options: FilterOptions | None = None) -> list[NewsItem]:
        options = options or FilterOptions()
        with self._lock:
            items = [dataclasses.replace(item) for item in self._items.values()]

        if options.category and options.category != "all":
            items = [item for item in items if item.category == options.category]
        if options.start_date is not None:
            start = ensure_utc(options.start_date)
            items = [item for item in items if item.published_at >= start]
        if options.end_date is not None:
            end = ensure_utc(options.end_date)
            items = [item for item in items if item.published_at <= end]
        if options.source:
            items = [item for item in items if item.source_name == options.source]

        items.sort(key=lambda item: item.published_at, reverse=True)
        if options.offset:
            items = items[options.offset:]
        if options.limit:
            items = items[: options.limit]
        return items

    def stats(self) -> StoreStats:
        with self._lock:
            items = list(self._items.values())
        stats = StoreStats(total_items=len(items))
        categories: Counter[str] = Counter()
        sources: Counter[str] = Counter()
        for item in items:
            categories[_label(item.category)] += 1
            sources[item.source_name] += 1
            if stats.oldest_item is None or item.published_at < stats.oldest_item:
                stats.oldest_item = item.published_at
            if stats.newest_item is None or item.published_at > stats.newest_item:
                stats.newest_item = item.published_at
            stats.estimated_memory_bytes += _estimate_size(item)
        stats.category_counts = dict(categories)
        stats.source_counts = dict(sources)
        return stats

    def category_counts(self) -> list[tuple[Category, int]]:
        """Counts for every category in vocabulary order, zeros included."""

        with self._lock:
            counts = Counter(item.category for item in self._items.values())
        return [(category, counts.get(category, 0)) for category in Category]

    def check_integrity(self) -> IntegrityReport:
        issues: list[str] = []
        valid_items = 0
        with self._lock:
            entries = list(self._items.items())
        for key, item in entries:
            item_issues: list[str] = []
            if not (item.id and item.title and item.link and item.source_name):
                item_issues.append(f"Item {key}: Missing required fields")
            if item.id != key:
                item_issues.append(f"Item {key}: ID mismatch (stored as {key}, item.id is {item.id})")
            if not isinstance(item.published_at, datetime):
                item_issues.append(f"Item {key}: Invalid publication date")
            if not isinstance(item.ingested_at, datetime):
                item_issues.append(f"Item {key}: Invalid ingestion date")
            if _label(item.category) not in _CATEGORY_LABELS:
                item_issues.append(f"Item {key}: Invalid category {item.category}")
            if item_issues:
                issues.extend(item_issues)
            else:
                valid_items += 1
        return IntegrityReport(
            is_valid=not issues,
            issues=issues,
            total_items=len(entries),
            valid_items=valid_items,
        )


def _normalised(item: NewsItem) -> NewsItem:
    """Copy of ``item`` with both timestamps as aware UTC; naive values count as UTC."""

    if not isinstance(item.published_at, datetime) or not isinstance(item.ingested_at, datetime):
        raise TypeError(f"Item {item.id} carries a non-datetime timestamp")
    return dataclasses.replace(
        item,
        published_at=ensure_utc(item.published_at),
        ingested_at=ensure_utc(item.ingested_at),
    )


def _label(category: Any) -> str:
    return category.value if isinstance(category, Category) else str(category)


def _estimate_size(item: NewsItem) -> int:
    # Two bytes per character plus a fixed per-object overhead
    chars = sum(
        len(str(value or ""))
        for value in (item.id, item.title, item.description, item.link, item.source_name, _label(item.category))
    )
    chars += len(item.content or "")
    return chars * 2 + _OBJECT_OVERHEAD_BYTES


__all__ = ["IntegrityReport", "NewsStore", "StoreStats"]
