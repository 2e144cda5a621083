"""Core contracts and shared types for the automated analysis pipeline."""

from .contracts import (
    ActiveRecording,
    AnalysisReport,
    ArchivedRecording,
    CacheEntry,
    CategorizedReport,
    ErrorKind,
    Failed,
    FilterDelta,
    FilterSet,
    Loading,
    Provenance,
    Ready,
    Recording,
    RecordingConfig,
    ReportState,
    RuleEvaluation,
    Target,
)

__all__ = [
    "ActiveRecording",
    "AnalysisReport",
    "ArchivedRecording",
    "CacheEntry",
    "CategorizedReport",
    "ErrorKind",
    "Failed",
    "FilterDelta",
    "FilterSet",
    "Loading",
    "Provenance",
    "Ready",
    "Recording",
    "RecordingConfig",
    "ReportState",
    "RuleEvaluation",
    "Target",
]
