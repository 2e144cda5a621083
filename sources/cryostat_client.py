"""httpx-backed recording source speaking the management REST and GraphQL APIs."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from config import ApiSettings, RecordingSettings, get_settings
from core import ActiveRecording, AnalysisReport, ArchivedRecording, Recording, RecordingConfig, RuleEvaluation, Target
from utils.exceptions import (
    AuthenticationError,
    RecordingCreationError,
    RecordingExistsError,
    RecordingSourceError,
    ReportGenerationError,
)
from .base import BaseRecordingSource, is_analysis_recording


logger = logging.getLogger(__name__)

_AUTH_FAILURE_STATUSES = {401, 403, 427}
_ALREADY_EXISTS_STATUSES = {400, 409}

_ARCHIVED_RECORDINGS_QUERY = """
query ArchivedRecordingsForAutomatedAnalysis($connectUrl: String) {
  archivedRecordings(filter: { sourceTarget: $connectUrl }) {
    data {
      name
      downloadUrl
      reportUrl
      metadata {
        labels
      }
      size
      archivedTime
    }
  }
}
""".strip()


def _encode(target: Target) -> str:
    return quote(target.connect_url, safe="")


def _labels(payload: Any) -> Dict[str, str]:
    metadata = dict((payload or {}).get("metadata") or {})
    raw = metadata.get("labels") or {}
    if isinstance(raw, list):
        return {str(item.get("key")): str(item.get("value")) for item in raw if isinstance(item, dict)}
    return {str(key): str(value) for key, value in dict(raw).items()}


def _to_active(payload: Dict[str, Any]) -> ActiveRecording:
    name = str(payload.get("name") or "")
    return ActiveRecording(
        id=payload.get("id"),
        name=name,
        state=str(payload.get("state") or "RUNNING"),
        report_url=payload.get("reportUrl"),
        download_url=payload.get("downloadUrl"),
        labels=_labels(payload),
        snapshot=name.startswith("snapshot-"),
    )


def _to_archived(payload: Dict[str, Any]) -> ArchivedRecording:
    return ArchivedRecording(
        name=str(payload.get("name") or ""),
        report_url=payload.get("reportUrl"),
        download_url=payload.get("downloadUrl"),
        labels=_labels(payload),
        archived_time=int(payload.get("archivedTime") or 0),
        size=int(payload.get("size") or 0),
    )


def parse_report(payload: Any) -> AnalysisReport:
    """Turn ``{ruleId: {name, topic, score, description}}`` into evaluations."""
    if not isinstance(payload, dict):
        raise ReportGenerationError("Report payload is not an object", source="cryostat")
    report: AnalysisReport = []
    for rule_id, body in payload.items():
        if not isinstance(body, dict):
            continue
        report.append(
            RuleEvaluation(
                topic=str(body.get("topic") or "Uncategorized"),
                name=str(body.get("name") or rule_id),
                score=float(body.get("score", -1)),
                description=str(body.get("description") or ""),
            )
        )
    return report


class CryostatRecordingSource(BaseRecordingSource):
    """
    Recording source for a Cryostat-style management server.
    
    With ``snapshot_reports`` enabled, reports for the live recording are
    taken from a fresh snapshot, which the resolver deletes afterwards.
    """

    def __init__(
        self,
        *,
        api_settings: Optional[ApiSettings] = None,
        recording_settings: Optional[RecordingSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        snapshot_reports: bool = False,
    ) -> None:
        settings = get_settings()
        self._api = api_settings or settings.api
        self._recording = recording_settings or settings.recording
        self._transport = transport
        self._snapshot_reports = snapshot_reports
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return "Cryostat"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self._api.auth_token:
                headers["Authorization"] = f"Bearer {self._api.auth_token}"
            self._client = httpx.AsyncClient(
                base_url=self._api.base_url.rstrip("/"),
                timeout=httpx.Timeout(float(self._api.request_timeout)),
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._get_client().request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise RecordingSourceError(f"{method} {url} failed", source=self.name, error=str(exc)) from exc
        if response.status_code in _AUTH_FAILURE_STATUSES:
            raise AuthenticationError(
                "Target authentication failed",
                source=self.name,
                status=response.status_code,
            )
        return response

    async def query_active_recording(self, target: Target) -> Optional[ActiveRecording]:
        response = await self._request("GET", f"/api/v1/targets/{_encode(target)}/recordings")
        if response.status_code == 404:
            return None
        if response.is_error:
            raise RecordingSourceError(
                "Listing active recordings failed", source=self.name, status=response.status_code
            )
        for payload in list(response.json() or []):
            recording = _to_active(payload)
            if is_analysis_recording(recording, self._recording):
                return recording
        return None

    async def prepare_report_recording(self, target: Target, recording: ActiveRecording) -> ActiveRecording:
        if not self._snapshot_reports:
            return recording
        return await self._create_snapshot(target)

    async def _create_snapshot(self, target: Target) -> ActiveRecording:
        response = await self._request("POST", f"/api/v2/targets/{_encode(target)}/snapshot")
        if response.is_error:
            raise RecordingSourceError("Snapshot creation failed", source=self.name, status=response.status_code)
        body = response.json() or {}
        result = dict(dict(body.get("data") or {}).get("result") or body)
        snapshot = _to_active(result)
        return snapshot.model_copy(update={"snapshot": True})

    async def query_archived_recordings(self, target: Target) -> List[ArchivedRecording]:
        response = await self._request(
            "POST",
            "/api/v2.2/graphql",
            json={"query": _ARCHIVED_RECORDINGS_QUERY, "variables": {"connectUrl": target.connect_url}},
        )
        if response.is_error:
            raise RecordingSourceError(
                "Archived recordings query failed", source=self.name, status=response.status_code
            )
        body = response.json() or {}
        if body.get("errors"):
            raise RecordingSourceError("Archived recordings query failed", source=self.name, errors=body["errors"])
        data = dict(dict(body.get("data") or {}).get("archivedRecordings") or {}).get("data") or []
        return [_to_archived(item) for item in data]

    async def generate_report(self, recording: Recording, target: Target) -> AnalysisReport:
        url = recording.report_url
        if not url:
            if isinstance(recording, ArchivedRecording):
                # Archived reports are only reachable through the server-issued URL.
                raise ReportGenerationError(
                    f"Archived recording {recording.name} has no report URL", source=self.name
                )
            url = f"/api/v1/targets/{_encode(target)}/reports/{quote(recording.name, safe='')}"
        try:
            response = await self._request("GET", url)
        except AuthenticationError:
            raise
        except RecordingSourceError as exc:
            raise ReportGenerationError(exc.message, source=self.name, **exc.details) from exc
        if response.is_error:
            raise ReportGenerationError(
                f"Report generation failed for {recording.name}",
                source=self.name,
                status=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ReportGenerationError("Report payload is not JSON", source=self.name) from exc
        return parse_report(payload)

    async def create_recording(self, target: Target, config: RecordingConfig) -> ActiveRecording:
        form = {
            "recordingName": config.name,
            "events": f"template={config.template_name},type={config.template_type}",
            "toDisk": "true",
            "archiveOnStop": str(config.archive_on_stop).lower(),
            "maxSize": str(config.max_size),
            "maxAge": str(config.max_age),
            "metadata": json.dumps({"labels": config.labels}),
        }
        if config.duration > 0:
            form["duration"] = str(config.duration)
        try:
            response = await self._request("POST", f"/api/v1/targets/{_encode(target)}/recordings", data=form)
        except AuthenticationError:
            raise
        except RecordingSourceError as exc:
            raise RecordingCreationError(exc.message, source=self.name, **exc.details) from exc
        if response.status_code in _ALREADY_EXISTS_STATUSES:
            raise RecordingExistsError(
                f"Recording {config.name} already exists", source=self.name, status=response.status_code
            )
        if response.is_error:
            raise RecordingCreationError(
                f"Recording {config.name} could not be created", source=self.name, status=response.status_code
            )
        try:
            recording = _to_active(response.json() or {})
        except ValueError:
            recording = ActiveRecording(name="")
        if not recording.name:
            recording = ActiveRecording(name=config.name, labels=dict(config.labels))
        return recording

    async def delete_recording(self, target: Target, name: str) -> None:
        response = await self._request("DELETE", f"/api/v1/targets/{_encode(target)}/recordings/{quote(name, safe='')}")
        if response.is_error and response.status_code != 404:
            raise RecordingSourceError(f"Deleting {name} failed", source=self.name, status=response.status_code)
