"""Versioned persistence of per-target and global report filters."""

from __future__ import annotations

import logging
from typing import Any, Dict

from pydantic import ValidationError

from core import FilterDelta, FilterSet
from analysis.filters import merge_filters
from .cache import BaseCache


logger = logging.getLogger(__name__)

_VERSION = "1"
_STORE_KEY = "automated-analysis-filters"


class FilterStore:
    """Filter sets keyed by target plus one set applied to every target."""

    def __init__(self, store: BaseCache) -> None:
        self._store = store
        self._targets: Dict[str, FilterSet] = {}
        self._global = FilterSet()
        self._load()

    def _load(self) -> None:
        raw = self._store.get(_STORE_KEY)
        if not isinstance(raw, dict):
            return
        if raw.get("version") != _VERSION:
            logger.info(f"Discarding persisted filters with version {raw.get('version')!r}")
            return
        try:
            self._targets = {
                str(target): FilterSet.model_validate(payload)
                for target, payload in dict(raw.get("targets") or {}).items()
            }
            self._global = FilterSet.model_validate(raw.get("global") or {})
        except ValidationError as exc:
            logger.warning(f"Discarding unreadable persisted filters: {exc}")
            self._targets = {}
            self._global = FilterSet()

    def _save(self) -> None:
        payload: Dict[str, Any] = {
            "version": _VERSION,
            "targets": {target: item.model_dump() for target, item in self._targets.items()},
            "global": self._global.model_dump(),
        }
        self._store.set(_STORE_KEY, payload)

    def get(self, target: str) -> FilterSet:
        return self._targets.get(target, FilterSet()).model_copy(deep=True)

    def get_global(self) -> FilterSet:
        return self._global.model_copy(deep=True)

    def update(self, target: str, delta: FilterDelta) -> FilterSet:
        updated = merge_filters(self.get(target), delta)
        self._targets[target] = updated
        self._save()
        return updated.model_copy(deep=True)

    def update_global(self, delta: FilterDelta) -> FilterSet:
        self._global = merge_filters(self._global, delta)
        self._save()
        return self.get_global()

    def clear(self, target: str) -> None:
        self._targets.pop(target, None)
        self._save()

    def clear_global(self) -> None:
        self._global = FilterSet()
        self._save()
