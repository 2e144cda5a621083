"""Service layer exposing report resolution, cache and filter controls to views."""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable, Dict, List, Optional

from analysis.filters import apply_filters, critical_only
from core import CategorizedReport, ErrorKind, Failed, FilterDelta, FilterSet, Loading, Provenance, Ready, ReportState, Target
from sources.base import BaseRecordingSource
from utils.exceptions import StorageError
from .context import PipelineContext
from .errors import BoundRecovery, bind_recovery
from .reducer import ResolutionFailed, ResolutionStarted, reduce_state
from .resolver import SourceResolver
from .staleness import Staleness, StalenessClock


logger = logging.getLogger(__name__)

StateListener = Callable[[str, ReportState], None]


class AutomatedAnalysisService:
    """Per-target report states driven by the source resolver.

    Every trigger bumps the target's generation; a resolution that lands
    after a newer trigger, ``detach`` or ``close`` is discarded.
    """

    def __init__(
        self,
        source: BaseRecordingSource,
        context: Optional[PipelineContext] = None,
        *,
        resolver: Optional[SourceResolver] = None,
    ) -> None:
        self._context = context or PipelineContext.from_settings()
        self._resolver = resolver or SourceResolver(source, self._context)
        self._states: Dict[str, ReportState] = {}
        self._generations: Dict[str, int] = {}
        self._clocks: Dict[str, StalenessClock] = {}
        self._staleness: Dict[str, Staleness] = {}
        self._listeners: List[StateListener] = []
        self._show_na = False
        self._critical_only = False
        self._closed = False
        self._unsubscribe_auth = self._context.auth_signal.subscribe(self._on_auth_failure)

    @property
    def context(self) -> PipelineContext:
        return self._context

    @property
    def resolver(self) -> SourceResolver:
        return self._resolver

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def state(self, target: Target) -> Optional[ReportState]:
        return self._states.get(target.connect_url)

    # Resolution

    async def resolve(self, target: Target) -> ReportState:
        generation = self._begin(target.connect_url)
        try:
            state = await self._resolver.resolve(target)
        except Exception as exc:
            state = self._internal_failure(target, exc)
        self._finish(target.connect_url, generation, state)
        return state

    async def start_profiling(self, target: Target) -> ReportState:
        generation = self._begin(target.connect_url)
        try:
            state = await self._resolver.start_profiling(target)
        except Exception as exc:
            state = self._internal_failure(target, exc)
        self._finish(target.connect_url, generation, state)
        return state

    async def clear_cache(self, target: Target) -> ReportState:
        """Drop the cached report and resolve again."""
        self._drop_cached(target.connect_url)
        return await self.resolve(target)

    def clear_analysis(self, target: Target) -> ReportState:
        """Drop the cached report and show the empty state without resolving."""
        key = target.connect_url
        self._drop_cached(key)
        self._generations[key] = self._generations.get(key, 0) + 1
        state = reduce_state(self._states.get(key, Loading()), ResolutionFailed(error=ErrorKind.NO_RECORDINGS))
        self._commit(key, state)
        return state

    def recovery_action(
        self,
        target: Target,
        *,
        allow_no_recordings_retry: bool = True,
    ) -> Optional[BoundRecovery]:
        state = self.state(target)
        if not isinstance(state, Failed):
            return None
        return bind_recovery(
            state.error,
            self,
            target,
            allow_no_recordings_retry=allow_no_recordings_retry,
        )

    def _drop_cached(self, key: str) -> None:
        try:
            self._context.report_cache.delete(key)
        except StorageError as exc:
            logger.warning(f"Could not drop cached report for {key}: {exc}")

    @staticmethod
    def _internal_failure(target: Target, exc: Exception) -> ReportState:
        logger.exception(f"Resolution for {target.connect_url} raised: {exc}")
        return reduce_state(Loading(), ResolutionFailed(error=ErrorKind.INTERNAL_ERROR))

    def _begin(self, key: str) -> int:
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        self._commit(key, reduce_state(self._states.get(key, Loading()), ResolutionStarted()))
        return generation

    def _finish(self, key: str, generation: int, state: ReportState) -> bool:
        if self._closed or self._generations.get(key) != generation:
            logger.info(f"Discarding superseded resolution for {key} ({state.kind})")
            return False
        self._commit(key, state)
        return True

    def _commit(self, key: str, state: ReportState) -> None:
        self._states[key] = state
        self._restart_clock(key, state)
        for listener in list(self._listeners):
            listener(key, state)

    def _on_auth_failure(self, connect_url: Optional[str]) -> None:
        keys = [connect_url] if connect_url else list(self._states)
        for key in keys:
            # Abandon anything in flight; its result would be stale.
            self._generations[key] = self._generations.get(key, 0) + 1
            self._commit(key, reduce_state(self._states.get(key, Loading()), ResolutionFailed(error=ErrorKind.AUTH_FAILURE)))

    # Staleness

    def staleness(self, target: Target) -> Optional[Staleness]:
        return self._staleness.get(target.connect_url)

    def _restart_clock(self, key: str, state: ReportState) -> None:
        self._stop_clock(key)
        if not isinstance(state, Ready) or state.provenance == Provenance.LIVE:
            return
        clock = StalenessClock(
            state.timestamp,
            partial(self._on_staleness_tick, key),
            clock=self._context.clock,
        )
        self._clocks[key] = clock
        self._staleness[key] = clock.start()

    def _on_staleness_tick(self, key: str, staleness: Staleness) -> None:
        self._staleness[key] = staleness

    def _stop_clock(self, key: str) -> None:
        clock = self._clocks.pop(key, None)
        if clock is not None:
            clock.stop()
        self._staleness.pop(key, None)

    # Filters

    def update_filters(self, target: Target, delta: FilterDelta) -> FilterSet:
        return self._context.filter_store.update(target.connect_url, delta)

    def clear_filters(self, target: Target) -> None:
        self._context.filter_store.clear(target.connect_url)

    def update_global_filters(self, delta: FilterDelta) -> FilterSet:
        return self._context.filter_store.update_global(delta)

    def clear_global_filters(self) -> None:
        self._context.filter_store.clear_global()

    def set_show_na(self, enabled: bool) -> None:
        self._show_na = bool(enabled)

    def set_critical_only(self, enabled: bool) -> None:
        self._critical_only = bool(enabled)

    def visible_report(self, target: Target) -> Optional[CategorizedReport]:
        """Current report after filters and display toggles, or None if not ready."""
        state = self.state(target)
        if not isinstance(state, Ready):
            return None
        store = self._context.filter_store
        filtered = apply_filters(
            state.report,
            store.get(target.connect_url),
            store.get_global(),
            show_na=self._show_na,
        )
        if self._critical_only:
            filtered = critical_only(filtered, self._context.settings.score.orange_threshold)
        return filtered

    # Lifecycle

    def detach(self, target: Target) -> None:
        """Stop tracking a target; in-flight results for it are dropped."""
        key = target.connect_url
        self._generations[key] = self._generations.get(key, 0) + 1
        self._stop_clock(key)
        self._states.pop(key, None)

    def close(self) -> None:
        self._closed = True
        self._unsubscribe_auth()
        for key in list(self._clocks):
            self._stop_clock(key)
