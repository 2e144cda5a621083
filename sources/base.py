"""
Recording Source
Abstract interface to the remote management API used by the resolver
"""
from abc import ABC, abstractmethod
from typing import List, Optional
import logging

from config import RecordingSettings, get_recording_settings
from core import ActiveRecording, AnalysisReport, ArchivedRecording, Recording, RecordingConfig, Target


logger = logging.getLogger(__name__)


def is_analysis_recording(recording: Recording, settings: Optional[RecordingSettings] = None) -> bool:
    """True for the reserved analysis recording, matched by name or origin label."""
    reserved = settings or get_recording_settings()
    if recording.name == reserved.name:
        return True
    return recording.labels.get("origin") == reserved.origin_label


class BaseRecordingSource(ABC):
    """
    Remote collaborator queried by the source resolver.
    
    Implementations raise the exceptions in ``utils.exceptions``:
    ``AuthenticationError`` when the target session is unauthenticated,
    ``ReportGenerationError`` when a report cannot be produced, and
    ``RecordingExistsError`` / ``RecordingCreationError`` on creation.
    """
    
    @property
    @abstractmethod
    def name(self) -> str:
        """Source name used in logs"""
        pass
    
    @abstractmethod
    async def query_active_recording(self, target: Target) -> Optional[ActiveRecording]:
        """
        Find the reserved analysis recording on the target.
        
        Returns:
            The recording, or None when the target has none
        """
        pass
    
    @abstractmethod
    async def query_archived_recordings(self, target: Target) -> List[ArchivedRecording]:
        """List recordings archived from the target"""
        pass
    
    @abstractmethod
    async def generate_report(self, recording: Recording, target: Target) -> AnalysisReport:
        """Run the analysis engine over a recording"""
        pass

    async def prepare_report_recording(self, target: Target, recording: ActiveRecording) -> ActiveRecording:
        """
        Pick the live recording a report is generated from.

        Sources may return a temporary snapshot (``snapshot=True``), which
        the resolver deletes once the report is done.
        """
        return recording

    @abstractmethod
    async def create_recording(self, target: Target, config: RecordingConfig) -> ActiveRecording:
        """Start the reserved analysis recording"""
        pass
    
    @abstractmethod
    async def delete_recording(self, target: Target, name: str) -> None:
        """Delete a recording; callers treat failures as best effort"""
        pass
    
    async def __aenter__(self):
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    async def close(self):
        """Release transport resources"""
        pass