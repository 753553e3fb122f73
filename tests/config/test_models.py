from __future__ import annotations

import pytest
from pydantic import ValidationError

from news_aggregator.config import (
    DEFAULT_SOURCES,
    Category,
    ClassifierSettings,
    FetchSettings,
    GlobalConfig,
    ScheduleConfig,
    ScheduleType,
    SourceConfig,
    StorageSettings,
)


def test_category_labels_are_preserved() -> None:
    assert [category.value for category in Category] == [
        "AIモデル",
        "AIアシスタント",
        "AIエージェント",
        "AI IDE",
        "AI CLIツール",
        "AI検索・ナレッジベース",
        "AI統合ツール",
        "AI音声・マルチモーダル",
        "AIノーコードツール",
        "AIデータ分析",
    ]


def test_defaults() -> None:
    config = GlobalConfig()
    assert config.fetch.timeout == 30
    assert config.fetch.retry_count == 3
    assert config.fetch.retry_delay == 1.0
    assert config.fetch.user_agent == "AI News Aggregator Bot 1.0"
    assert config.storage.max_items == 1000
    assert config.storage.max_age_days == 7
    assert config.classifier.confidence_threshold == 0.1
    assert config.classifier.default_category is Category.AI_MODELS
    assert config.schedule.type is ScheduleType.CRON
    assert config.schedule.value == "*/15 * * * *"
    assert config.schedule.timezone == "Asia/Tokyo"


def test_default_sources() -> None:
    assert [source.name for source in DEFAULT_SOURCES] == [
        "AINOW",
        "Publickey",
        "ITmedia NEWS",
        "CodeZine",
        "日経クロステック",
        "Qiita",
    ]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"type": ScheduleType.CRON, "value": "*/5 * * *"},
        {"type": ScheduleType.CRON, "value": 15},
        {"type": ScheduleType.INTERVAL, "value": 0},
        {"type": ScheduleType.INTERVAL, "value": True},
        {"type": ScheduleType.INTERVAL, "value": "fast"},
        {"timezone": ""},
    ],
)
def test_schedule_validation(kwargs) -> None:
    with pytest.raises(ValidationError):
        ScheduleConfig(**kwargs)


def test_schedule_accepts_interval_forms() -> None:
    assert ScheduleConfig(type="interval", value=90).value == 90
    assert ScheduleConfig(type=ScheduleType.INTERVAL, value={"hours": 1}).value == {"hours": 1}


def test_source_requires_name_and_endpoint() -> None:
    with pytest.raises(ValidationError):
        SourceConfig(name="  ", endpoint="https://example.com")
    source = SourceConfig(name=" Qiita ", endpoint="https://qiita.com/feed", default_category="AIエージェント")
    assert source.name == "Qiita"
    assert source.default_category is Category.AI_AGENT


@pytest.mark.parametrize(
    ("model", "kwargs"),
    [
        (FetchSettings, {"retry_count": 0}),
        (FetchSettings, {"timeout": 0}),
        (FetchSettings, {"max_workers": 0}),
        (StorageSettings, {"max_items": 0}),
        (StorageSettings, {"max_age_days": 0}),
        (ClassifierSettings, {"confidence_threshold": 1.5}),
    ],
)
def test_settings_limits(model, kwargs) -> None:
    with pytest.raises(ValidationError):
        model(**kwargs)
