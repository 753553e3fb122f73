"""Record types flowing through the ingestion pipeline."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from ..config import Category


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalise aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def iso_millis(value: datetime) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""

    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def make_item_id(link: str, published_at: datetime) -> str:
    """Deterministic identifier for an article publication."""

    seed = f"{link}{iso_millis(published_at)}"
    return hashlib.md5(seed.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class RawRecord:
    """Unclassified feed entry as returned by the fetcher."""

    title: str
    description: str
    link: str
    published_at: datetime
    source_name: str
    default_category: Category
    content: str | None = None

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}"


@dataclass(slots=True)
class NewsItem:
    """Classified article held by the store."""

    id: str
    title: str
    description: str
    link: str
    published_at: datetime
    source_name: str
    category: Category
    content: str | None = None
    ingested_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class FilterOptions:
    """Query parameters for reading the store."""

    category: Category | Literal["all"] | None = None
    source: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int | None = None
    offset: int | None = None


__all__ = [
    "FilterOptions",
    "NewsItem",
    "RawRecord",
    "ensure_utc",
    "iso_millis",
    "make_item_id",
    "utcnow",
]
