"""
Storage Module
Key-value stores, report cache and filter persistence
"""
from .cache import (
    BaseCache,
    MemoryCache,
    DiskCache,
    get_cache,
)
from .report_cache import ReportCache
from .filter_store import FilterStore

__all__ = [
    "BaseCache",
    "MemoryCache",
    "DiskCache",
    "get_cache",
    "ReportCache",
    "FilterStore",
]
