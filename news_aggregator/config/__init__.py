"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
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

__all__ = [
    "Category",
    "ClassifierSettings",
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_SOURCES",
    "FetchSettings",
    "GlobalConfig",
    "ScheduleConfig",
    "ScheduleType",
    "SourceConfig",
    "StorageSettings",
]
