"""Recording sources consulted by the report resolver."""

from .base import BaseRecordingSource, is_analysis_recording
from .cryostat_client import CryostatRecordingSource, parse_report

__all__ = [
    "BaseRecordingSource",
    "CryostatRecordingSource",
    "is_analysis_recording",
    "parse_report",
]
