"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

import structlog

_LOGGING_INITIALISED = False


def _default_log_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "logs"


def configure_logging(verbose: bool = False, log_dir: Path | None = None) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED
    log_dir = log_dir or _default_log_dir()
    error_log = log_dir / "error.log"
    app_log = log_dir / "aggregator.log"
    log_dir.mkdir(parents=True, exist_ok=True)
    error_log.touch(exist_ok=True)
    app_log.touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "plain": {
                        "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    }
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "level": level,
                        "formatter": "plain",
                    },
                    "app_file": {
                        "class": "logging.FileHandler",
                        "level": "INFO",
                        "filename": str(app_log),
                        "formatter": "plain",
                        "encoding": "utf-8",
                    },
                    "error_file": {
                        "class": "logging.FileHandler",
                        "level": "ERROR",
                        "filename": str(error_log),
                        "formatter": "plain",
                        "encoding": "utf-8",
                    },
                },
                "loggers": {
                    "news_aggregator": {
                        "handlers": ["console", "app_file", "error_file"],
                        "level": level,
                        "propagate": False,
                    },
                    # APScheduler is chatty at INFO; keep only its warnings
                    "apscheduler": {
                        "handlers": ["console", "error_file"],
                        "level": "WARNING",
                        "propagate": False,
                    },
                },
            }
        )

        # Forward structlog events to stdlib logging; JSON rendering happens at handler level
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger("news_aggregator")


def component_logger(component: str) -> structlog.BoundLogger:
    """Return a logger named after a pipeline component."""

    return structlog.get_logger(f"news_aggregator.{component}").bind(component=component)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


__all__ = ["component_logger", "configure_logging", "tail_log"]
