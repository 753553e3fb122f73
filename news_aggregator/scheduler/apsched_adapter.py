"""APScheduler wrapper owning the single periodic collection job."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig, ScheduleType

COLLECTION_JOB_ID = "news::collection"


class APSchedulerAdapter:
    """Register, pause and remove the collection job on a background scheduler."""

    def __init__(self, scheduler: Any | None = None, logger: structlog.BoundLogger | None = None) -> None:
        self.scheduler = scheduler or BackgroundScheduler()
        self.logger = logger or structlog.get_logger("news_aggregator.scheduler").bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule(self, config: ScheduleConfig, callback: Callable[[], Any]) -> None:
        trigger = self._build_trigger(config)
        job_kwargs: dict[str, Any] = {}
        if not config.auto_start:
            # APScheduler registers the job paused when next_run_time is None
            job_kwargs["next_run_time"] = None
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=COLLECTION_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )
        self.logger.info("job_scheduled", schedule=config.model_dump(mode="json"))

    def remove(self) -> bool:
        if not self.has_job():
            return False
        try:
            self.scheduler.remove_job(COLLECTION_JOB_ID)
        except Exception:  # noqa: BLE001
            self.logger.warning("job_remove_failed", job_id=COLLECTION_JOB_ID)
            return False
        return True

    def pause(self) -> None:
        self.scheduler.pause_job(COLLECTION_JOB_ID)

    def resume(self) -> None:
        self.scheduler.resume_job(COLLECTION_JOB_ID)

    def has_job(self) -> bool:
        return self.scheduler.get_job(COLLECTION_JOB_ID) is not None

    def next_run_time(self) -> datetime | None:
        job = self.scheduler.get_job(COLLECTION_JOB_ID)
        if job is None:
            return None
        # Pending jobs (scheduler not started yet) carry no next_run_time
        return getattr(job, "next_run_time", None)

    def _build_trigger(self, config: ScheduleConfig):
        if config.type is ScheduleType.CRON:
            return CronTrigger.from_crontab(str(config.value), timezone=config.timezone)
        if config.type is ScheduleType.INTERVAL:
            if isinstance(config.value, (int, float)):
                return IntervalTrigger(seconds=float(config.value), timezone=config.timezone)
            if isinstance(config.value, dict):
                return IntervalTrigger(timezone=config.timezone, **config.value)
            raise ValueError("Interval schedule requires seconds or kwargs dict")
        raise ValueError(f"Unknown schedule type: {config.type}")


__all__ = ["APSchedulerAdapter", "COLLECTION_JOB_ID"]
