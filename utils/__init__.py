"""
Utilities Module
"""
from .logger import setup_logger, console
from .exceptions import (
    AutomatedAnalysisError,
    RecordingSourceError,
    AuthenticationError,
    ReportGenerationError,
    RecordingCreationError,
    RecordingExistsError,
    StorageError,
    CacheError,
)

__all__ = [
    "setup_logger",
    "console",
    "AutomatedAnalysisError",
    "RecordingSourceError",
    "AuthenticationError",
    "ReportGenerationError",
    "RecordingCreationError",
    "RecordingExistsError",
    "StorageError",
    "CacheError",
]
