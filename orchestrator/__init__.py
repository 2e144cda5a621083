"""Report acquisition orchestration: resolver, states, errors and staleness."""

from .context import PipelineContext
from .errors import (
    ERROR_MESSAGES,
    RECOVERY_ACTIONS,
    BoundRecovery,
    RecoveryAction,
    ResolverStage,
    RetryKind,
    bind_recovery,
    classify_exception,
)
from .reducer import (
    ActiveReportResolved,
    ArchivedReportResolved,
    CachedReportResolved,
    ResolutionFailed,
    ResolutionStarted,
    reduce_state,
)
from .resolver import SourceResolver, select_freshest
from .service import AutomatedAnalysisService
from .signals import AuthFailureSignal
from .staleness import Staleness, StalenessClock, StalenessUnit, compute_staleness

__all__ = [
    "ERROR_MESSAGES",
    "RECOVERY_ACTIONS",
    "ActiveReportResolved",
    "ArchivedReportResolved",
    "AuthFailureSignal",
    "AutomatedAnalysisService",
    "BoundRecovery",
    "CachedReportResolved",
    "PipelineContext",
    "RecoveryAction",
    "ResolutionFailed",
    "ResolutionStarted",
    "ResolverStage",
    "RetryKind",
    "SourceResolver",
    "Staleness",
    "StalenessClock",
    "StalenessUnit",
    "bind_recovery",
    "classify_exception",
    "compute_staleness",
    "reduce_state",
    "select_freshest",
]
