"""
Configuration Management Module
"""
from .settings import (
    Settings,
    RecordingSettings,
    ScoreSettings,
    ApiSettings,
    StorageSettings,
    get_settings,
    get_recording_settings,
    get_score_settings,
)

__all__ = [
    "Settings",
    "RecordingSettings",
    "ScoreSettings",
    "ApiSettings",
    "StorageSettings",
    "get_settings",
    "get_recording_settings",
    "get_score_settings",
]
