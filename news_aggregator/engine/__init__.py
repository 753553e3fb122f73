"""Engine components orchestrating fetch → classify → dedup → store."""

from .classifier import ClassificationResult, KeywordClassifier
from .coordinator import CollectionReport, FeedCoordinator
from .dedup import DeduplicationResult, DuplicateDetector
from .fetcher import FeedFetcher
from .records import FilterOptions, NewsItem, RawRecord, make_item_id
from .store import IntegrityReport, NewsStore, StoreStats

__all__ = [
    "ClassificationResult",
    "CollectionReport",
    "DeduplicationResult",
    "DuplicateDetector",
    "FeedCoordinator",
    "FeedFetcher",
    "FilterOptions",
    "IntegrityReport",
    "KeywordClassifier",
    "NewsItem",
    "NewsStore",
    "RawRecord",
    "StoreStats",
    "make_item_id",
]
