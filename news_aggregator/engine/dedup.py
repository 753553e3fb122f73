"""Duplicate detection for incoming news items."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

from .records import NewsItem

REPUBLISH_WINDOW = timedelta(hours=1)


@dataclass
class DeduplicationResult:
    id_duplicate: bool
    link_duplicate: bool

    @property
    def is_duplicate(self) -> bool:
        return self.id_duplicate or self.link_duplicate


class DuplicateDetector:
    """Decide whether an item is already represented in a collection.

    Feeds sometimes republish an article with a slightly different timestamp,
    which yields a new id. Items that share a link and were published within
    ``window`` of each other are therefore treated as the same article.
    """

    def __init__(self, window: timedelta = REPUBLISH_WINDOW) -> None:
        self.window = window

    def check(self, item: NewsItem, existing: Mapping[str, NewsItem]) -> DeduplicationResult:
        if item.id in existing:
            return DeduplicationResult(id_duplicate=True, link_duplicate=False)
        for stored in existing.values():
            if stored.link != item.link:
                continue
            if abs(stored.published_at - item.published_at) <= self.window:
                return DeduplicationResult(id_duplicate=False, link_duplicate=True)
        return DeduplicationResult(id_duplicate=False, link_duplicate=False)


__all__ = ["DeduplicationResult", "DuplicateDetector", "REPUBLISH_WINDOW"]
