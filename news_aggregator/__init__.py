"""AI news aggregator: feed ingestion, keyword classification and retention."""

__version__ = "0.1.0"
