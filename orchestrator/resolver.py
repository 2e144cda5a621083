"""Fallback chain that picks the best available analysis report for a target."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from core import ActiveRecording, ArchivedRecording, ErrorKind, Loading, RecordingConfig, ReportState, Target
from sources.base import BaseRecordingSource
from utils.exceptions import RecordingExistsError, StorageError
from .context import PipelineContext
from .errors import ResolverStage, classify_exception
from .reducer import (
    ActiveReportResolved,
    ArchivedReportResolved,
    CachedReportResolved,
    ResolutionFailed,
    ResolverEvent,
    reduce_state,
)


logger = logging.getLogger(__name__)


def select_freshest(recordings: List[ArchivedRecording]) -> Optional[ArchivedRecording]:
    """Archived recording with the largest archived_time; first listed wins ties."""
    freshest: Optional[ArchivedRecording] = None
    for recording in recordings:
        if freshest is None or recording.archived_time > freshest.archived_time:
            freshest = recording
    return freshest


class SourceResolver:
    """Resolves a report through Active -> Cached -> Archived sources.

    Each step runs only after the previous one's outcome is known, and the
    chain only falls through on "no active recording" or "cache miss".
    Every other failure ends the chain with a classified ``Failed`` state.
    """

    def __init__(self, source: BaseRecordingSource, context: PipelineContext) -> None:
        self._source = source
        self._context = context
        self._cleanup_tasks: Set[asyncio.Task] = set()

    async def resolve(self, target: Target) -> ReportState:
        event = await self._resolve_event(target)
        return reduce_state(Loading(), event)

    async def start_profiling(self, target: Target) -> ReportState:
        """Create the reserved recording, then report on it directly."""
        config = RecordingConfig.from_settings(self._context.settings.recording)
        logger.info(f"Starting analysis recording '{config.name}' on {target.connect_url}")
        try:
            recording = await self._source.create_recording(target, config)
        except RecordingExistsError:
            logger.info(f"Analysis recording already exists on {target.connect_url}")
            recording = ActiveRecording(name=config.name, labels=dict(config.labels))
        except Exception as exc:
            return reduce_state(Loading(), self._failed(target, exc, ResolverStage.CREATE_RECORDING))
        event = await self._report_from_active(target, recording)
        return reduce_state(Loading(), event)

    async def wait_for_cleanup(self) -> None:
        """Wait for pending temporary-recording deletions."""
        if self._cleanup_tasks:
            await asyncio.gather(*list(self._cleanup_tasks))

    async def _resolve_event(self, target: Target) -> ResolverEvent:
        try:
            recording = await self._source.query_active_recording(target)
        except Exception as exc:
            return self._failed(target, exc, ResolverStage.ACTIVE_QUERY)

        if recording is not None:
            return await self._report_from_active(target, recording)

        logger.info(f"No active analysis recording on {target.connect_url}, checking cache")
        try:
            entry = self._context.report_cache.get(target.connect_url)
        except StorageError as exc:
            logger.error(f"Reading cached report for {target.connect_url} failed: {exc}")
            return ResolutionFailed(error=ErrorKind.INTERNAL_ERROR)
        if entry is not None:
            return CachedReportResolved(entry=entry)

        return await self._report_from_archive(target)

    async def _report_from_active(self, target: Target, recording: ActiveRecording) -> ResolverEvent:
        try:
            recording = await self._source.prepare_report_recording(target, recording)
        except Exception as exc:
            return self._failed(target, exc, ResolverStage.ACTIVE_REPORT)

        try:
            report = await self._source.generate_report(recording, target)
        except Exception as exc:
            return self._failed(target, exc, ResolverStage.ACTIVE_REPORT)
        finally:
            if recording.snapshot:
                self._schedule_cleanup(target, recording.name)

        # A live report supersedes whatever was cached.
        try:
            self._context.report_cache.delete(target.connect_url)
        except StorageError as exc:
            logger.warning(f"Could not drop cached report for {target.connect_url}: {exc}")
        logger.info(f"Live report for {target.connect_url}: {len(report)} evaluations")
        return ActiveReportResolved(report=list(report))

    async def _report_from_archive(self, target: Target) -> ResolverEvent:
        try:
            recordings = await self._source.query_archived_recordings(target)
        except Exception as exc:
            return self._failed(target, exc, ResolverStage.ARCHIVE_QUERY)

        freshest = select_freshest(recordings)
        if freshest is None:
            logger.info(f"No archived recordings for {target.connect_url}")
            return ResolutionFailed(error=ErrorKind.NO_RECORDINGS)

        if freshest.archived_time <= 0:
            logger.error(f"Archived recording {freshest.name} has no archived time")
            return ResolutionFailed(error=ErrorKind.INTERNAL_ERROR)

        try:
            report = await self._source.generate_report(freshest, target)
        except Exception as exc:
            return self._failed(target, exc, ResolverStage.ARCHIVE_REPORT)

        try:
            self._context.report_cache.put(target.connect_url, report, freshest.archived_time)
        except StorageError as exc:
            logger.error(f"Caching archived report for {target.connect_url} failed: {exc}")
            return ResolutionFailed(error=ErrorKind.INTERNAL_ERROR)
        logger.info(f"Archived report for {target.connect_url} from {freshest.name} at {freshest.archived_time}")
        return ArchivedReportResolved(report=list(report), archived_time=freshest.archived_time)

    def _failed(self, target: Target, exc: Exception, stage: ResolverStage) -> ResolutionFailed:
        kind = classify_exception(exc, stage)
        logger.warning(f"{stage.value} failed for {target.connect_url} ({kind.value}): {exc}")
        if kind == ErrorKind.AUTH_FAILURE:
            self._context.auth_signal.publish(target.connect_url)
        return ResolutionFailed(error=kind)

    def _schedule_cleanup(self, target: Target, name: str) -> None:
        task = asyncio.get_running_loop().create_task(self._delete_quietly(target, name))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    async def _delete_quietly(self, target: Target, name: str) -> None:
        try:
            await self._source.delete_recording(target, name)
        except Exception as exc:
            logger.warning(f"Failed to delete temporary recording {name} on {target.connect_url}: {exc}")
