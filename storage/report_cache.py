"""Per-target single-slot store for the last obtained analysis report."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from core import AnalysisReport, CacheEntry
from .cache import BaseCache


logger = logging.getLogger(__name__)

_KEY_PREFIX = "automated-analysis"


class ReportCache:
    """Report cache keyed by target connect URL.

    ``put`` overwrites unconditionally and entries have no expiry; a
    cached report stays until deleted or superseded by a live report.
    """

    def __init__(self, store: BaseCache) -> None:
        self._store = store

    @staticmethod
    def _key(target: str) -> str:
        return f"{_KEY_PREFIX}:{target}"

    def get(self, target: str) -> Optional[CacheEntry]:
        raw = self._store.get(self._key(target))
        if raw is None:
            return None
        try:
            entry = CacheEntry.model_validate(raw)
        except ValidationError as exc:
            logger.warning(f"Ignoring unreadable cached report for {target}: {exc}")
            return None
        if entry.target != target:
            return None
        return entry

    def put(self, target: str, report: AnalysisReport, timestamp: int) -> CacheEntry:
        entry = CacheEntry(target=target, report=list(report), timestamp=int(timestamp))
        self._store.set(self._key(target), entry.model_dump(mode="json"))
        logger.debug(f"Cached {len(entry.report)} evaluations for {target} at {entry.timestamp}")
        return entry

    def delete(self, target: str) -> None:
        self._store.delete(self._key(target))
