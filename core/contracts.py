"""Canonical data contracts for the automated analysis pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Provenance(str, Enum):
    """Source that produced the currently displayed report."""

    LIVE = "live"
    CACHED = "cached"
    ARCHIVED = "archived"


class ErrorKind(str, Enum):
    """Closed set of resolution failures."""

    NO_RECORDINGS = "no_recordings"
    RECORDING_CREATION_FAILURE = "recording_creation_failure"
    REPORT_FAILURE = "report_failure"
    AUTH_FAILURE = "auth_failure"
    INTERNAL_ERROR = "internal_error"


class Target(BaseModel):
    """Remote JVM identified by its connection URL."""

    model_config = ConfigDict(frozen=True)

    connect_url: str
    alias: Optional[str] = None

    @field_validator("connect_url", mode="before")
    @classmethod
    def _non_empty_url(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("connect_url is required")
        return text

    @property
    def display_name(self) -> str:
        return self.alias or self.connect_url


class Recording(BaseModel):
    """A named flight recording on, or archived from, a target."""

    name: str
    report_url: Optional[str] = None
    download_url: Optional[str] = None
    labels: Dict[str, str] = Field(default_factory=dict)


class ActiveRecording(Recording):
    """Live recording, running or stopped, still held by the target."""

    id: Optional[int] = None
    state: str = "RUNNING"
    snapshot: bool = False


class ArchivedRecording(Recording):
    """Recording persisted off-target."""

    archived_time: int = 0
    size: int = 0


class RuleEvaluation(BaseModel):
    """One scored finding from the analysis engine."""

    model_config = ConfigDict(frozen=True)

    topic: str
    name: str
    score: float
    description: str = ""


AnalysisReport = List[RuleEvaluation]
CategorizedReport = Dict[str, List[RuleEvaluation]]


class CacheEntry(BaseModel):
    """Last report obtained for a target from a cache-eligible source."""

    target: str
    report: List[RuleEvaluation] = Field(default_factory=list)
    timestamp: int = Field(gt=0)


class RecordingConfig(BaseModel):
    """Parameters for creating the reserved analysis recording."""

    name: str
    template_name: str
    template_type: str
    duration: int = 0
    archive_on_stop: bool = True
    max_size: int = 0
    max_age: int = 0
    labels: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Any) -> "RecordingConfig":
        return cls(
            name=settings.name,
            template_name=settings.template_name,
            template_type=settings.template_type,
            duration=settings.duration,
            archive_on_stop=settings.archive_on_stop,
            max_size=settings.max_size,
            max_age=settings.max_age,
            labels={"origin": settings.origin_label},
        )


class FilterSet(BaseModel):
    """Selected categories, rule names and score bounds."""

    categories: List[str] = Field(default_factory=list)
    names: List[str] = Field(default_factory=list)
    min_score: Optional[float] = None
    max_score: Optional[float] = None

    def is_empty(self) -> bool:
        return not self.categories and not self.names and self.min_score is None and self.max_score is None


class FilterDelta(BaseModel):
    """Incremental change applied to a FilterSet."""

    add_categories: List[str] = Field(default_factory=list)
    remove_categories: List[str] = Field(default_factory=list)
    add_names: List[str] = Field(default_factory=list)
    remove_names: List[str] = Field(default_factory=list)
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    clear_score_bounds: bool = False


class Loading(BaseModel):
    """Resolution in progress."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["loading"] = "loading"


class Ready(BaseModel):
    """A categorized report and where it came from."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ready"] = "ready"
    report: Dict[str, List[RuleEvaluation]] = Field(default_factory=dict)
    provenance: Provenance
    timestamp: Optional[int] = None

    @model_validator(mode="after")
    def _timestamp_matches_provenance(self) -> "Ready":
        if self.provenance == Provenance.LIVE:
            if self.timestamp is not None:
                raise ValueError("live reports carry no staleness timestamp")
        elif not self.timestamp or self.timestamp <= 0:
            raise ValueError(f"{self.provenance.value} reports require a positive timestamp")
        return self


class Failed(BaseModel):
    """Terminal failure with its classified kind."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["failed"] = "failed"
    error: ErrorKind
    message: str = ""


ReportState = Union[Loading, Ready, Failed]
