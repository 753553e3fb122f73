"""Shared fixtures for the news aggregator test-suite."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from news_aggregator.config import Category, ConfigLocator, ConfigRepository, SourceConfig
from news_aggregator.engine.records import NewsItem, RawRecord, make_item_id, utcnow

SAMPLE_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example AI Feed</title>
    <link>https://example.com</link>
    <description>Example</description>
    <item>
      <title>OpenAI releases new GPT model</title>
      <link>https://example.com/gpt</link>
      <description>&lt;p&gt;A new  large language model&lt;/p&gt;</description>
      <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <link>https://example.com/untitled</link>
      <pubDate>Tue, 16 Jan 2024 08:30:00 +0900</pubDate>
    </item>
  </channel>
</rss>
"""


class StubScheduler:
    """Records APScheduler calls without running any jobs."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.jobs: dict[str, object] = {}

    def add_job(self, callback, trigger, id, replace_existing, max_instances, coalesce, **kwargs):  # noqa: ANN001
        self.calls.append(
            {
                "event": "add",
                "id": id,
                "trigger": trigger,
                "replace_existing": replace_existing,
                "max_instances": max_instances,
                "coalesce": coalesce,
                **kwargs,
            }
        )
        self.jobs[id] = callback

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    def get_jobs(self):
        return []

    def remove_job(self, job_id):
        self.calls.append({"event": "remove", "id": job_id})
        del self.jobs[job_id]

    def pause_job(self, job_id):
        self.calls.append({"event": "pause", "id": job_id})

    def resume_job(self, job_id):
        self.calls.append({"event": "resume", "id": job_id})

    def start(self):
        self.calls.append({"event": "started"})

    def shutdown(self, wait=False):  # noqa: ARG002
        self.calls.append({"event": "shutdown"})


@pytest.fixture
def stub_scheduler() -> StubScheduler:
    return StubScheduler()


@pytest.fixture
def sample_source_config() -> Callable[..., SourceConfig]:
    def _builder(**overrides: Any) -> SourceConfig:
        base: dict[str, Any] = {
            "name": "Example",
            "endpoint": "https://example.com/feed.xml",
            "default_category": Category.AI_MODELS,
        }
        base.update(overrides)
        return SourceConfig(**base)

    return _builder


@pytest.fixture
def make_record() -> Callable[..., RawRecord]:
    def _builder(**overrides: Any) -> RawRecord:
        base: dict[str, Any] = {
            "title": "Weather forecast for tomorrow",
            "description": "Sunny with light winds",
            "link": "https://example.com/a",
            "published_at": utcnow() - timedelta(hours=1),
            "source_name": "Example",
            "default_category": Category.AI_MODELS,
        }
        base.update(overrides)
        return RawRecord(**base)

    return _builder


@pytest.fixture
def make_item() -> Callable[..., NewsItem]:
    def _builder(**overrides: Any) -> NewsItem:
        link = overrides.pop("link", "https://example.com/a")
        published_at: datetime = overrides.pop("published_at", utcnow() - timedelta(hours=1))
        base: dict[str, Any] = {
            "id": make_item_id(link, published_at),
            "title": "Example headline",
            "description": "Example description",
            "link": link,
            "published_at": published_at,
            "source_name": "Example",
            "category": Category.AI_MODELS,
        }
        base.update(overrides)
        return NewsItem(**base)

    return _builder


@pytest.fixture
def sample_rss() -> bytes:
    return SAMPLE_RSS


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("NEWS_AGGREGATOR_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository
