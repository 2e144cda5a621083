"""Explicit per-process context injected into the resolver and service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from config import Settings, get_settings
from storage import BaseCache, FilterStore, ReportCache, get_cache
from .signals import AuthFailureSignal
from .staleness import now_millis


@dataclass
class PipelineContext:
    """Stores, signal and clock shared by one pipeline instance."""

    settings: Settings
    report_cache: ReportCache
    filter_store: FilterStore
    auth_signal: AuthFailureSignal = field(default_factory=AuthFailureSignal)
    clock: Callable[[], int] = now_millis

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        store: Optional[BaseCache] = None,
        auth_signal: Optional[AuthFailureSignal] = None,
    ) -> "PipelineContext":
        """Build a context whose report cache and filter store share ``store``."""
        resolved = settings or get_settings()
        backing = store or get_cache(
            provider=resolved.storage.cache_provider,
            cache_dir=resolved.storage.cache_path,
        )
        return cls(
            settings=resolved,
            report_cache=ReportCache(backing),
            filter_store=FilterStore(backing),
            auth_signal=auth_signal or AuthFailureSignal(),
        )
