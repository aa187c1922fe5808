"""Privacy-preserving content deduplication, hash comparison, audit and retention core."""

__version__ = "1.0.0"
