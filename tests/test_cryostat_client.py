from __future__ import annotations

import json

import httpx
import pytest

from config import ApiSettings, RecordingSettings
from core import ActiveRecording, ArchivedRecording, RecordingConfig, Target
from sources import CryostatRecordingSource, is_analysis_recording, parse_report
from utils.exceptions import (
    AuthenticationError,
    RecordingCreationError,
    RecordingExistsError,
    RecordingSourceError,
    ReportGenerationError,
)


TARGET = Target(connect_url="service:jmx:rmi:///jndi/rmi://app:9091/jmxrmi")
ENCODED = "service%3Ajmx%3Armi%3A%2F%2F%2Fjndi%2Frmi%3A%2F%2Fapp%3A9091%2Fjmxrmi"
REPORT_JSON = {
    "HeapContent": {"name": "Heap Usage", "topic": "heap", "score": 82.5, "description": "Heap is full"},
    "Sockets": {"name": "Socket Reads", "topic": "io", "score": -1},
}


def _source(handler, **kwargs) -> CryostatRecordingSource:
    return CryostatRecordingSource(
        api_settings=ApiSettings(base_url="http://cryostat.test", auth_token="tok"),
        recording_settings=RecordingSettings(),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_query_active_recording_matches_reserved_name() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.raw_path.decode() == f"/api/v1/targets/{ENCODED}/recordings"
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(
            200,
            json=[
                {"id": 1, "name": "user-recording", "state": "RUNNING"},
                {
                    "id": 2,
                    "name": "automated-analysis",
                    "state": "RUNNING",
                    "reportUrl": "http://cryostat.test/reports/2",
                    "metadata": {"labels": {"origin": "automated-analysis"}},
                },
            ],
        )

    async with _source(handler) as source:
        recording = await source.query_active_recording(TARGET)

    assert recording is not None
    assert recording.id == 2
    assert recording.labels == {"origin": "automated-analysis"}
    assert recording.snapshot is False


@pytest.mark.asyncio
async def test_query_active_recording_not_found_and_auth() -> None:
    async with _source(lambda request: httpx.Response(200, json=[{"name": "other"}])) as source:
        assert await source.query_active_recording(TARGET) is None

    async with _source(lambda request: httpx.Response(427)) as source:
        with pytest.raises(AuthenticationError):
            await source.query_active_recording(TARGET)

    async with _source(lambda request: httpx.Response(500)) as source:
        with pytest.raises(RecordingSourceError):
            await source.query_active_recording(TARGET)


@pytest.mark.asyncio
async def test_snapshot_reports_prepare_a_snapshot_recording() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=[{"name": "automated-analysis"}])
        assert request.url.raw_path.decode() == f"/api/v2/targets/{ENCODED}/snapshot"
        return httpx.Response(201, json={"data": {"result": {"id": 9, "name": "snapshot-9"}}})

    async with _source(handler, snapshot_reports=True) as source:
        active = await source.query_active_recording(TARGET)
        recording = await source.prepare_report_recording(TARGET, active)

    assert active.name == "automated-analysis"
    assert recording.name == "snapshot-9"
    assert recording.snapshot is True


@pytest.mark.asyncio
async def test_prepare_report_recording_keeps_live_recording_by_default() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request {request.method} {request.url}")

    live = ActiveRecording(name="automated-analysis")
    async with _source(handler) as source:
        assert await source.prepare_report_recording(TARGET, live) is live


@pytest.mark.asyncio
async def test_query_archived_recordings_uses_graphql() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/api/v2.2/graphql"
        assert body["variables"] == {"connectUrl": TARGET.connect_url}
        assert "archivedRecordings" in body["query"]
        return httpx.Response(
            200,
            json={
                "data": {
                    "archivedRecordings": {
                        "data": [
                            {"name": "a.jfr", "reportUrl": "/reports/a", "archivedTime": 100, "size": 10},
                            {
                                "name": "b.jfr",
                                "archivedTime": 200,
                                "metadata": {"labels": [{"key": "origin", "value": "automated-analysis"}]},
                            },
                        ]
                    }
                }
            },
        )

    async with _source(handler) as source:
        recordings = await source.query_archived_recordings(TARGET)

    assert [item.archived_time for item in recordings] == [100, 200]
    assert recordings[1].labels == {"origin": "automated-analysis"}


@pytest.mark.asyncio
async def test_query_archived_recordings_graphql_errors() -> None:
    async with _source(lambda request: httpx.Response(200, json={"errors": [{"message": "bad"}]})) as source:
        with pytest.raises(RecordingSourceError):
            await source.query_archived_recordings(TARGET)


@pytest.mark.asyncio
async def test_generate_report_parses_evaluations() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/reports/a"
        return httpx.Response(200, json=REPORT_JSON)

    async with _source(handler) as source:
        report = await source.generate_report(ArchivedRecording(name="a.jfr", report_url="/reports/a"), TARGET)

    assert {item.name: item.score for item in report} == {"Heap Usage": 82.5, "Socket Reads": -1.0}
    assert report[0].description == "Heap is full"


@pytest.mark.asyncio
async def test_generate_report_requires_report_url_for_archives() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request {request.method} {request.url}")

    async with _source(handler) as source:
        with pytest.raises(ReportGenerationError):
            await source.generate_report(ArchivedRecording(name="b.jfr", archived_time=200), TARGET)


@pytest.mark.asyncio
async def test_generate_report_failures() -> None:
    async with _source(lambda request: httpx.Response(502)) as source:
        with pytest.raises(ReportGenerationError):
            await source.generate_report(ActiveRecording(name="automated-analysis"), TARGET)

    async with _source(lambda request: httpx.Response(200, content=b"not json")) as source:
        with pytest.raises(ReportGenerationError):
            await source.generate_report(ActiveRecording(name="automated-analysis"), TARGET)


@pytest.mark.asyncio
async def test_create_recording_outcomes() -> None:
    config = RecordingConfig.from_settings(RecordingSettings())
    captured = {}

    def created(request: httpx.Request) -> httpx.Response:
        captured["body"] = request.content.decode()
        return httpx.Response(201, json={"id": 3, "name": "automated-analysis"})

    async with _source(created) as source:
        recording = await source.create_recording(TARGET, config)
    assert recording.name == "automated-analysis"
    assert "recordingName=automated-analysis" in captured["body"]
    assert "template%3DContinuous%2Ctype%3DTARGET" in captured["body"]

    async with _source(lambda request: httpx.Response(400)) as source:
        with pytest.raises(RecordingExistsError):
            await source.create_recording(TARGET, config)

    async with _source(lambda request: httpx.Response(500)) as source:
        with pytest.raises(RecordingCreationError) as info:
            await source.create_recording(TARGET, config)
        assert not isinstance(info.value, RecordingExistsError)


@pytest.mark.asyncio
async def test_delete_recording_tolerates_missing() -> None:
    async with _source(lambda request: httpx.Response(404)) as source:
        await source.delete_recording(TARGET, "snapshot-9")

    async with _source(lambda request: httpx.Response(500)) as source:
        with pytest.raises(RecordingSourceError):
            await source.delete_recording(TARGET, "snapshot-9")


def test_parse_report_rejects_non_object() -> None:
    with pytest.raises(ReportGenerationError):
        parse_report(["not", "a", "mapping"])


def test_is_analysis_recording_by_name_or_label() -> None:
    settings = RecordingSettings()
    assert is_analysis_recording(ActiveRecording(name="automated-analysis"), settings)
    assert is_analysis_recording(ActiveRecording(name="custom", labels={"origin": "automated-analysis"}), settings)
    assert not is_analysis_recording(ActiveRecording(name="custom"), settings)
