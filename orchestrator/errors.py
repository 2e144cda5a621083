"""Failure classification and the static recovery-action table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional

from core import ErrorKind, ReportState, Target
from utils.exceptions import AuthenticationError


class RetryKind(str, Enum):
    """Service operation a recovery action re-runs."""

    START_PROFILING = "start_profiling"
    REFRESH = "refresh"


class ResolverStage(str, Enum):
    """Remote call a failure came from."""

    ACTIVE_QUERY = "active_query"
    ACTIVE_REPORT = "active_report"
    ARCHIVE_QUERY = "archive_query"
    ARCHIVE_REPORT = "archive_report"
    CREATE_RECORDING = "create_recording"


@dataclass(frozen=True)
class RecoveryAction:
    label: str
    retry: RetryKind


RECOVERY_ACTIONS: Mapping[ErrorKind, RecoveryAction] = MappingProxyType(
    {
        ErrorKind.NO_RECORDINGS: RecoveryAction("Start a recording for analysis", RetryKind.START_PROFILING),
        ErrorKind.RECORDING_CREATION_FAILURE: RecoveryAction("Retry starting recording", RetryKind.START_PROFILING),
        ErrorKind.REPORT_FAILURE: RecoveryAction("Retry loading report", RetryKind.REFRESH),
        ErrorKind.AUTH_FAILURE: RecoveryAction("Retry", RetryKind.REFRESH),
        ErrorKind.INTERNAL_ERROR: RecoveryAction("Retry", RetryKind.REFRESH),
    }
)

ERROR_MESSAGES: Mapping[ErrorKind, str] = MappingProxyType(
    {
        ErrorKind.NO_RECORDINGS: "No active or archived recordings available. Start a recording for analysis.",
        ErrorKind.RECORDING_CREATION_FAILURE: "Failed to start a recording for analysis.",
        ErrorKind.REPORT_FAILURE: "Failed to load the report from the recording.",
        ErrorKind.AUTH_FAILURE: "Authentication failure.",
        ErrorKind.INTERNAL_ERROR: "Internal error. Unable to retrieve a report.",
    }
)

_STAGE_FAILURES: Mapping[ResolverStage, ErrorKind] = MappingProxyType(
    {
        ResolverStage.ACTIVE_QUERY: ErrorKind.INTERNAL_ERROR,
        ResolverStage.ACTIVE_REPORT: ErrorKind.REPORT_FAILURE,
        ResolverStage.ARCHIVE_QUERY: ErrorKind.NO_RECORDINGS,
        ResolverStage.ARCHIVE_REPORT: ErrorKind.INTERNAL_ERROR,
        ResolverStage.CREATE_RECORDING: ErrorKind.RECORDING_CREATION_FAILURE,
    }
)


def classify_exception(exc: BaseException, stage: ResolverStage) -> ErrorKind:
    """Map a collaborator failure at ``stage`` to its ErrorKind.

    Authentication failures win regardless of stage.
    """
    if isinstance(exc, AuthenticationError):
        return ErrorKind.AUTH_FAILURE
    return _STAGE_FAILURES[stage]


@dataclass(frozen=True)
class BoundRecovery:
    """Recovery action bound to a service and target, callable with no arguments."""

    kind: ErrorKind
    label: str
    retry: RetryKind
    callback: Callable[[], Awaitable[ReportState]]

    def __call__(self) -> Awaitable[ReportState]:
        return self.callback()


def bind_recovery(
    kind: ErrorKind,
    service: Any,
    target: Target,
    *,
    allow_no_recordings_retry: bool = True,
) -> Optional[BoundRecovery]:
    """Resolve the table entry for ``kind`` into a zero-argument callback.

    ``service`` needs ``resolve(target)`` and ``start_profiling(target)``.
    """
    if kind == ErrorKind.NO_RECORDINGS and not allow_no_recordings_retry:
        return None
    action = RECOVERY_ACTIONS[kind]
    if action.retry == RetryKind.START_PROFILING:
        callback = lambda: service.start_profiling(target)  # noqa: E731
    else:
        callback = lambda: service.resolve(target)  # noqa: E731
    return BoundRecovery(kind=kind, label=action.label, retry=action.retry, callback=callback)
