from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from config import Settings
from core import ActiveRecording, AnalysisReport, ArchivedRecording, Recording, RecordingConfig, RuleEvaluation, Target
from orchestrator import PipelineContext
from sources.base import BaseRecordingSource
from storage import MemoryCache
from utils.exceptions import (
    AuthenticationError,
    CacheError,
    RecordingCreationError,
    RecordingExistsError,
    ReportGenerationError,
)


class FakeRecordingSource(BaseRecordingSource):
    """Scriptable in-memory recording source that records every call."""

    def __init__(self) -> None:
        self.active: Optional[ActiveRecording] = None
        self.archived: List[ArchivedRecording] = []
        self.reports: Dict[str, AnalysisReport] = {}
        self.auth_failure = False
        self.active_query_error: Optional[Exception] = None
        self.archive_query_error: Optional[Exception] = None
        self.failing_reports: set = set()
        self.create_outcome = "ok"
        self.delete_error: Optional[Exception] = None
        self.snapshot_name: Optional[str] = None
        self.calls: List[str] = []
        self.created: List[RecordingConfig] = []
        self.deleted: List[str] = []

    @property
    def name(self) -> str:
        return "fake"

    async def query_active_recording(self, target: Target) -> Optional[ActiveRecording]:
        self.calls.append("query_active")
        if self.auth_failure:
            raise AuthenticationError("unauthorized", source=self.name)
        if self.active_query_error is not None:
            raise self.active_query_error
        return self.active

    async def query_archived_recordings(self, target: Target) -> List[ArchivedRecording]:
        self.calls.append("query_archived")
        if self.archive_query_error is not None:
            raise self.archive_query_error
        return list(self.archived)

    async def generate_report(self, recording: Recording, target: Target) -> AnalysisReport:
        self.calls.append(f"report:{recording.name}")
        if recording.name in self.failing_reports:
            raise ReportGenerationError("engine failed", source=self.name)
        return list(self.reports.get(recording.name, []))

    async def prepare_report_recording(self, target: Target, recording: ActiveRecording) -> ActiveRecording:
        if self.snapshot_name is None:
            return recording
        self.calls.append("snapshot")
        return ActiveRecording(name=self.snapshot_name, snapshot=True)

    async def create_recording(self, target: Target, config: RecordingConfig) -> ActiveRecording:
        self.calls.append("create")
        self.created.append(config)
        if self.create_outcome == "exists":
            raise RecordingExistsError("exists", source=self.name)
        if self.create_outcome == "fail":
            raise RecordingCreationError("no template", source=self.name)
        self.active = ActiveRecording(name=config.name, labels=dict(config.labels))
        return self.active

    async def delete_recording(self, target: Target, name: str) -> None:
        self.calls.append(f"delete:{name}")
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(name)


class FailingCache(MemoryCache):
    """Memory store whose writes and deletes can be switched to fail."""

    def __init__(self, fail_set: bool = True, fail_delete: bool = True) -> None:
        super().__init__()
        self.fail_set = fail_set
        self.fail_delete = fail_delete

    def set(self, key, value) -> None:
        if self.fail_set:
            raise CacheError("disk full")
        super().set(key, value)

    def delete(self, key) -> None:
        if self.fail_delete:
            raise CacheError("disk full")
        super().delete(key)


def evaluation(topic: str, name: str, score: float) -> RuleEvaluation:
    return RuleEvaluation(topic=topic, name=name, score=score)


@pytest.fixture
def target() -> Target:
    return Target(connect_url="service:jmx:rmi:///jndi/rmi://app:9091/jmxrmi", alias="app")


@pytest.fixture
def source() -> FakeRecordingSource:
    return FakeRecordingSource()


@pytest.fixture
def context() -> PipelineContext:
    return PipelineContext.from_settings(Settings(), store=MemoryCache())


@pytest.fixture
def sample_report() -> AnalysisReport:
    return [
        evaluation("GC", "Heap Usage", 80.0),
        evaluation("JVM", "Deprecated Flags", 10.0),
        evaluation("GC", "Pause Time", 30.0),
        evaluation("GC", "Allocation Rate", 30.0),
        evaluation("IO", "Socket Reads", -1.0),
    ]


