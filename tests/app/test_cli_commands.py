from __future__ import annotations

import logging
from datetime import timedelta

import pytest
import structlog
from typer.testing import CliRunner

from news_aggregator.app import AppState, app
from news_aggregator.config import Category
from news_aggregator.engine.records import RawRecord, utcnow
from news_aggregator.orchestrator import Orchestrator
from news_aggregator.scheduler import APSchedulerAdapter


class StubFetcher:
    def __init__(self, records) -> None:
        self.records = records

    def fetch(self, source):
        if source.name == "Broken":
            raise RuntimeError("feed unavailable")
        return [record for record in self.records if record.source_name == source.name]

    def close(self) -> None:
        return None


@pytest.fixture
def state(monkeypatch, temp_config_repository, sample_source_config, stub_scheduler):
    # keep structlog's default stdout printer from mixing events into CLI output
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))
    sources = [
        sample_source_config(name="AINOW"),
        sample_source_config(name="CodeZine", default_category=Category.AI_IDE),
    ]
    now = utcnow()
    records = [
        RawRecord("OpenAI ships GPT model", "", "https://ainow.example/gpt", now - timedelta(hours=1),
                  "AINOW", Category.AI_MODELS),
        RawRecord("GitHub Copilot", "code completion", "https://codezine.example/copilot",
                  now - timedelta(hours=2), "CodeZine", Category.AI_IDE),
    ]
    orchestrator = Orchestrator(
        temp_config_repository,
        sources=sources,
        fetcher=StubFetcher(records),
        adapter=APSchedulerAdapter(scheduler=stub_scheduler),
    )
    app_state = AppState(repository=temp_config_repository, orchestrator=orchestrator)
    monkeypatch.setattr("news_aggregator.app.build_state", lambda verbose: app_state)
    yield app_state
    structlog.reset_defaults()


def test_cli_collect(state) -> None:
    result = CliRunner().invoke(app, ["collect"])
    assert result.exit_code == 0, result.stdout
    assert "Collection result" in result.stdout
    assert "success" in result.stdout
    assert "AINOW" in result.stdout and "CodeZine" in result.stdout
    assert state.orchestrator.store_stats().total_items == 2


def test_cli_items_filters_by_category(state) -> None:
    result = CliRunner().invoke(app, ["items", "--category", "AI_IDE"])
    assert result.exit_code == 0, result.stdout
    assert "GitHub Copilot" in result.stdout
    assert "OpenAI ships GPT model" not in result.stdout
    assert "ainow.example" not in result.stdout


def test_cli_items_accepts_label_and_all(state) -> None:
    result = CliRunner().invoke(app, ["items", "--category", "all", "--limit", "0"])
    assert result.exit_code == 0, result.stdout
    assert "OpenAI ships GPT model" in result.stdout

    labelled = CliRunner().invoke(app, ["items", "--category", "AIモデル", "--no-collect"])
    assert labelled.exit_code == 0, labelled.stdout
    assert "OpenAI ships GPT model" in labelled.stdout


def test_cli_items_rejects_unknown_category(state) -> None:
    result = CliRunner().invoke(app, ["items", "--category", "robots"])
    assert result.exit_code != 0


def test_cli_items_empty(state) -> None:
    result = CliRunner().invoke(app, ["items", "--no-collect"])
    assert result.exit_code == 0, result.stdout
    assert "No items matched." in result.stdout


def test_cli_stats(state) -> None:
    result = CliRunner().invoke(app, ["stats"])
    assert result.exit_code == 0, result.stdout
    assert "Total items" in result.stdout
    assert "AIモデル" in result.stdout
    assert "AIデータ分析" in result.stdout


def test_cli_integrity(state) -> None:
    result = CliRunner().invoke(app, ["integrity"])
    assert result.exit_code == 0, result.stdout
    assert "Store is consistent." in result.stdout


def test_cli_serve_arms_and_stops(state, stub_scheduler, monkeypatch) -> None:
    def interrupt() -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr("news_aggregator.app._wait_for_interrupt", interrupt)
    result = CliRunner().invoke(app, ["serve", "--interval", "60", "--no-collect"])
    assert result.exit_code == 0, result.stdout
    assert "Scheduler armed" in result.stdout
    events = [call["event"] for call in stub_scheduler.calls]
    assert "add" in events and "remove" in events


def test_cli_source_cycle(state) -> None:
    runner = CliRunner()
    listed = runner.invoke(app, ["source", "list"])
    assert listed.exit_code == 0, listed.stdout
    assert "AINOW" in listed.stdout

    added = runner.invoke(app, ["source", "add", "Example Feed", "https://example.com/rss", "--category", "AI_AGENT"])
    assert added.exit_code == 0, added.stdout
    loaded = state.repository.load_source("Example Feed")
    assert loaded.default_category is Category.AI_AGENT
    assert "Wrote 6 built-in" in added.stdout
    names = {source.name for source in state.repository.list_sources()}
    assert len(names) == 7 and "AINOW" in names

    removed = runner.invoke(app, ["source", "remove", "Example Feed", "--yes"])
    assert removed.exit_code == 0, removed.stdout
    missing = runner.invoke(app, ["source", "remove", "Example Feed", "--yes"])
    assert missing.exit_code == 1


def test_cli_log_show(state) -> None:
    log_path = state.repository.locator.logs_dir / "aggregator.log"
    log_path.write_text("first\nsecond\nthird\n", encoding="utf-8")
    result = CliRunner().invoke(app, ["log", "show", "--tail", "2"])
    assert result.exit_code == 0, result.stdout
    assert "second" in result.stdout and "third" in result.stdout
    assert "first" not in result.stdout.replace("aggregator.log", "")
