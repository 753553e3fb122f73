"""Scheduling of periodic collection runs."""

from .apsched_adapter import APSchedulerAdapter, COLLECTION_JOB_ID
from .collection import CONFLICT_MESSAGE, CollectionScheduler, RunResult, RunStats

__all__ = [
    "APSchedulerAdapter",
    "COLLECTION_JOB_ID",
    "CONFLICT_MESSAGE",
    "CollectionScheduler",
    "RunResult",
    "RunStats",
]
