"""Feed fetching with bounded retries and permissive entry mapping."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

import feedparser
import httpx
import structlog
from dateutil import parser as dateparser
from selectolax.parser import HTMLParser

from ..config import FetchSettings, SourceConfig
from ..errors import FetchError
from .records import RawRecord, ensure_utc, utcnow

DEFAULT_TITLE = "No title"
DEFAULT_DESCRIPTION = "No description"

_DATE_FIELDS = ("published", "updated", "created")
_PARSED_DATE_FIELDS = ("published_parsed", "updated_parsed", "created_parsed")
# Zone abbreviations dateutil does not know on its own
_TZ_ABBREVIATIONS = {"JST": 9 * 3600, "KST": 9 * 3600}


class FeedFetcher:
    """Retrieve and map the entries of one feed source."""

    def __init__(
        self,
        settings: FetchSettings | None = None,
        logger: structlog.BoundLogger | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.settings = settings or FetchSettings()
        self.logger = logger or structlog.get_logger("news_aggregator.fetcher")
        self._client = client or httpx.Client(
            follow_redirects=True,
            timeout=self.settings.timeout,
            headers={"User-Agent": self.settings.user_agent},
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, source: SourceConfig) -> list[RawRecord]:
        """Return all entries of ``source``, retrying with linear backoff.

        Raises:
            FetchError: every attempt failed; wraps the last underlying error.
        """

        max_attempts = self.settings.retry_count
        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                records = self._fetch_once(source)
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                self.logger.warning(
                    "fetch_attempt_failed",
                    source=source.name,
                    url=source.endpoint,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(exc),
                )
                if attempt < max_attempts:
                    time.sleep(self.settings.retry_delay * attempt)
                continue
            self.logger.debug(
                "fetch_succeeded", source=source.name, attempt=attempt, items=len(records)
            )
            return records

        raise FetchError(source.name, last_error, max_attempts) from last_error

    # ------------------------------------------------------------------
    def _fetch_once(self, source: SourceConfig) -> list[RawRecord]:
        response = self._client.get(source.endpoint, timeout=self.settings.timeout)
        if self._is_failure(response):
            raise RuntimeError(f"Unexpected status {response.status_code} from {source.endpoint}")
        feed = feedparser.parse(response.content)
        if feed.bozo and not feed.entries:
            raise RuntimeError(f"Invalid feed from {source.endpoint}: {feed.get('bozo_exception')}")
        # Map everything before returning so a bad entry never yields a partial list
        return [self._to_record(entry, source) for entry in feed.entries]

    def _to_record(self, entry: Any, source: SourceConfig) -> RawRecord:
        title = _clean_text(entry.get("title")) or DEFAULT_TITLE
        content = _entry_content(entry)
        description = (
            _clean_text(entry.get("summary"))
            or _clean_text(content)
            or _clean_text(entry.get("description"))
            or DEFAULT_DESCRIPTION
        )
        return RawRecord(
            title=title,
            description=description,
            link=(entry.get("link") or "").strip(),
            published_at=_entry_published(entry),
            source_name=source.name,
            default_category=source.default_category,
            content=content,
        )

    @staticmethod
    def _is_failure(response: Any) -> bool:
        status_code = getattr(response, "status_code", 0)
        return not 200 <= status_code < 300


def _clean_text(value: Any) -> str:
    """Strip markup and collapse whitespace; empty string for missing values."""

    if not value or not isinstance(value, str):
        return ""
    if "<" in value:
        body = HTMLParser(value).body
        if body is not None:
            value = body.text(separator=" ")
    return " ".join(value.split())


def _entry_content(entry: Any) -> str | None:
    blocks = entry.get("content") or []
    for block in blocks:
        value = block.get("value") if hasattr(block, "get") else None
        if value:
            return value
    return None


def _entry_published(entry: Any) -> datetime:
    # feedparser already normalised these structs to UTC, named zones included
    for key in _PARSED_DATE_FIELDS:
        parsed = entry.get(key)
        if parsed:
            return datetime(*parsed[:6], tzinfo=timezone.utc)
    for key in _DATE_FIELDS:
        raw = entry.get(key)
        if not raw:
            continue
        try:
            return ensure_utc(dateparser.parse(raw, tzinfos=_TZ_ABBREVIATIONS))
        except (ValueError, OverflowError, TypeError):
            continue
    return utcnow()


__all__ = ["DEFAULT_DESCRIPTION", "DEFAULT_TITLE", "FeedFetcher"]
