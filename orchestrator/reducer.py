"""Resolver events and the pure reducer that turns them into report states."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from analysis.categorizer import categorize
from core import AnalysisReport, CacheEntry, ErrorKind, Failed, Loading, Provenance, Ready, ReportState
from .errors import ERROR_MESSAGES


@dataclass(frozen=True)
class ResolutionStarted:
    pass


@dataclass(frozen=True)
class ActiveReportResolved:
    report: AnalysisReport = field(default_factory=list)


@dataclass(frozen=True)
class CachedReportResolved:
    entry: CacheEntry


@dataclass(frozen=True)
class ArchivedReportResolved:
    report: AnalysisReport
    archived_time: int


@dataclass(frozen=True)
class ResolutionFailed:
    error: ErrorKind
    message: str = ""


ResolverEvent = Union[
    ResolutionStarted,
    ActiveReportResolved,
    CachedReportResolved,
    ArchivedReportResolved,
    ResolutionFailed,
]


def reduce_state(state: ReportState, event: ResolverEvent) -> ReportState:
    """Next state after ``event``.

    Every event fully determines the resulting state; ``state`` is accepted
    so callers fold events uniformly.
    """
    if isinstance(event, ResolutionStarted):
        return Loading()
    if isinstance(event, ActiveReportResolved):
        return Ready(report=categorize(event.report), provenance=Provenance.LIVE)
    if isinstance(event, CachedReportResolved):
        return Ready(
            report=categorize(event.entry.report),
            provenance=Provenance.CACHED,
            timestamp=event.entry.timestamp,
        )
    if isinstance(event, ArchivedReportResolved):
        return Ready(
            report=categorize(event.report),
            provenance=Provenance.ARCHIVED,
            timestamp=event.archived_time,
        )
    if isinstance(event, ResolutionFailed):
        return Failed(error=event.error, message=event.message or ERROR_MESSAGES[event.error])
    raise TypeError(f"Unknown resolver event: {event!r}")
