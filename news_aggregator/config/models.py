"""Pydantic models used across the aggregator configuration flow."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class Category(str, Enum):
    """Classification vocabulary. Values are user-facing labels."""

    AI_MODELS = "AIモデル"
    AI_ASSISTANT = "AIアシスタント"
    AI_AGENT = "AIエージェント"
    AI_IDE = "AI IDE"
    AI_CLI = "AI CLIツール"
    AI_SEARCH = "AI検索・ナレッジベース"
    AI_INTEGRATION = "AI統合ツール"
    AI_MULTIMODAL = "AI音声・マルチモーダル"
    AI_NOCODE = "AIノーコードツール"
    AI_DATA_ANALYSIS = "AIデータ分析"


class ScheduleType(str, Enum):
    """Trigger kinds supported by the collection scheduler."""

    CRON = "cron"
    INTERVAL = "interval"


class ScheduleConfig(BaseModel):
    """When periodic collection should fire."""

    type: ScheduleType = Field(default=ScheduleType.CRON)
    value: Any = Field(
        default="*/15 * * * *",
        description="Cron expression or interval seconds / kwargs, depending on type.",
    )
    auto_start: bool = True
    timezone: str = "Asia/Tokyo"

    @model_validator(mode="after")
    def _validate_value(self) -> "ScheduleConfig":
        if self.type is ScheduleType.CRON:
            if not isinstance(self.value, str) or len(self.value.split()) != 5:
                raise ValueError("Cron schedule requires a five-field string expression")
        if self.type is ScheduleType.INTERVAL:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float, dict)):
                raise ValueError("Interval schedule requires seconds (int/float) or kwargs dict")
            if isinstance(self.value, (int, float)) and self.value <= 0:
                raise ValueError("Interval seconds must be > 0")
        if not self.timezone:
            raise ValueError("timezone cannot be empty")
        return self


class SourceConfig(BaseModel):
    """One external feed endpoint."""

    name: str
    endpoint: str
    default_category: Category = Category.AI_MODELS

    @field_validator("name", "endpoint")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class FetchSettings(BaseModel):
    """HTTP and retry behaviour of the feed fetcher."""

    timeout: float = 30.0
    retry_count: int = 3
    retry_delay: float = 1.0
    user_agent: str = "AI News Aggregator Bot 1.0"
    # None: one worker per source
    max_workers: int | None = None

    @model_validator(mode="after")
    def _validate_limits(self) -> "FetchSettings":
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.retry_count < 1:
            raise ValueError("retry_count must be >= 1")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        return self


class StorageSettings(BaseModel):
    """Capacity and retention limits of the in-memory store."""

    max_items: int = 1000
    max_age_days: int = 7

    @model_validator(mode="after")
    def _validate_limits(self) -> "StorageSettings":
        if self.max_items < 1:
            raise ValueError("max_items must be >= 1")
        if self.max_age_days < 1:
            raise ValueError("max_age_days must be >= 1")
        return self


class ClassifierSettings(BaseModel):
    """Fallback category and acceptance threshold for keyword scoring."""

    default_category: Category = Category.AI_MODELS
    confidence_threshold: float = 0.1

    @field_validator("confidence_threshold")
    @classmethod
    def _check_threshold(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("Confidence threshold must be between 0.0 and 1.0")
        return value


DEFAULT_SOURCES: tuple[SourceConfig, ...] = (
    SourceConfig(name="AINOW", endpoint="https://ainow.ai/feed/", default_category=Category.AI_MODELS),
    SourceConfig(
        name="Publickey",
        endpoint="https://www.publickey1.jp/atom.xml",
        default_category=Category.AI_DATA_ANALYSIS,
    ),
    SourceConfig(
        name="ITmedia NEWS",
        endpoint="https://rss.itmedia.co.jp/rss/2.0/news_bursts.xml",
        default_category=Category.AI_ASSISTANT,
    ),
    SourceConfig(
        name="CodeZine",
        endpoint="https://codezine.jp/rss/new/20/index.xml",
        default_category=Category.AI_IDE,
    ),
    SourceConfig(
        name="日経クロステック",
        endpoint="https://xtech.nikkei.com/rss/index.rdf",
        default_category=Category.AI_INTEGRATION,
    ),
    SourceConfig(name="Qiita", endpoint="https://qiita.com/tags/ai/feed", default_category=Category.AI_AGENT),
)


class GlobalConfig(BaseModel):
    """Global controls shared across components."""

    fetch: FetchSettings = Field(default_factory=FetchSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    verbose: bool = False


__all__ = [
    "Category",
    "ClassifierSettings",
    "DEFAULT_SOURCES",
    "FetchSettings",
    "GlobalConfig",
    "ScheduleConfig",
    "ScheduleType",
    "SourceConfig",
    "StorageSettings",
]
