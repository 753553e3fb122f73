"""Configuration loading helpers for the news aggregator."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import yaml

from .models import DEFAULT_SOURCES, GlobalConfig, SourceConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
GLOBAL_CONFIG_FILENAME = "global_config.yaml"
SOURCE_CONFIG_SUFFIX = ".yaml"
HOME_ENV_VAR = "NEWS_AGGREGATOR_HOME"


def _slugify(name: str) -> str:
    return "".join(ch.lower() if ch.isalnum() else "-" for ch in name).strip("-")


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    sources_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV_VAR)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.sources_dir = (self.data_dir / "sources").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.sources_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global_cache: GlobalConfig | None = None

    # ------------------------------------------------------------------
    # Global configuration helpers
    # ------------------------------------------------------------------
    def load_global_config(self) -> GlobalConfig:
        if self._global_cache is not None:
            return self._global_cache
        path = self.locator.global_config_path()
        if path.exists():
            payload = _read_file(path)
            global_cfg = GlobalConfig.model_validate(payload)
        else:
            global_cfg = GlobalConfig()
            self.save_global_config(global_cfg)
        self._global_cache = global_cfg
        return global_cfg

    def save_global_config(self, config: GlobalConfig) -> None:
        path = self.locator.global_config_path()
        _write_file(path, config.model_dump(mode="json"))
        self._global_cache = config

    # ------------------------------------------------------------------
    # Source configuration helpers
    # ------------------------------------------------------------------
    def source_path(self, source_name: str) -> Path:
        slug = _slugify(source_name)
        return self.locator.sources_dir / f"{slug}{SOURCE_CONFIG_SUFFIX}"

    def list_source_files(self) -> Iterable[Path]:
        for path in sorted(self.locator.sources_dir.glob("*")):
            if path.is_file() and path.suffix in CONFIG_EXTENSIONS:
                yield path

    def list_sources(self) -> list[SourceConfig]:
        """Return configured feeds, falling back to the built-in set."""

        configured = [self.load_source(path) for path in self.list_source_files()]
        if configured:
            return configured
        return [source.model_copy() for source in DEFAULT_SOURCES]

    def seed_default_sources(self) -> int:
        """Write the built-in feeds to disk when no source file exists yet.

        Returns the number of files written, zero when sources are already configured.
        """

        if any(True for _ in self.list_source_files()):
            return 0
        for source in DEFAULT_SOURCES:
            self.save_source(source)
        return len(DEFAULT_SOURCES)

    def load_source(self, identifier: str | Path) -> SourceConfig:
        path = identifier if isinstance(identifier, Path) else self.source_path(identifier)
        if not path.exists():
            raise FileNotFoundError(f"Source configuration not found: {identifier}")
        return SourceConfig.model_validate(_read_file(path))

    def save_source(self, config: SourceConfig) -> Path:
        path = self.source_path(config.name)
        _write_file(path, config.model_dump(mode="json"))
        return path

    def delete_source(self, source_name: str) -> bool:
        path = self.source_path(source_name)
        if path.exists():
            path.unlink()
            return True
        return False


__all__ = ["ConfigLocator", "ConfigRepository", "CONFIG_EXTENSIONS", "HOME_ENV_VAR"]
