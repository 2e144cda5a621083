"""
Settings Configuration
Pydantic-based configuration for the automated analysis pipeline
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class RecordingSettings(BaseSettings):
    """Reserved analysis recording configuration"""
    name: str = Field(default="automated-analysis", description="Reserved recording name")
    origin_label: str = Field(default="automated-analysis", description="Value of the 'origin' label")
    template_name: str = Field(default="Continuous", description="Event template name")
    template_type: str = Field(default="TARGET", description="Event template type")
    duration: int = Field(default=0, description="Recording duration (seconds), 0 = continuous")
    archive_on_stop: bool = Field(default=True, description="Archive the recording when stopped")
    max_size: int = Field(default=10 * 1024 * 1024, description="Maximum recording size (bytes)")
    max_age: int = Field(default=0, description="Maximum event age (seconds), 0 = unbounded")
    
    class Config:
        env_prefix = "RECORDING_"


class ScoreSettings(BaseSettings):
    """Rule evaluation score thresholds"""
    orange_threshold: float = Field(default=25.0, description="Lowest score rated as a warning")
    red_threshold: float = Field(default=75.0, description="Lowest score rated as critical")
    
    class Config:
        env_prefix = "SCORE_"


class ApiSettings(BaseSettings):
    """Remote management API configuration"""
    base_url: str = Field(default="http://localhost:8181", description="Management API base URL")
    request_timeout: int = Field(default=30, description="Request timeout (seconds)")
    auth_token: Optional[str] = Field(default=None, description="Bearer token for the API")
    
    class Config:
        env_prefix = "CRYOSTAT_"


class StorageSettings(BaseSettings):
    """Report cache and filter storage configuration"""
    cache_provider: str = Field(default="memory", description="Key-value store: memory, disk")
    cache_path: str = Field(default="./data/cache", description="Disk store directory")
    
    class Config:
        env_prefix = "STORAGE_"


class Settings(BaseSettings):
    """Top-level settings aggregating every group"""
    
    recording: RecordingSettings = Field(default_factory=RecordingSettings)
    score: ScoreSettings = Field(default_factory=ScoreSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
    
    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings after applying an optional .env file"""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"
        
        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)
        
        return cls(
            recording=RecordingSettings(),
            score=ScoreSettings(),
            api=ApiSettings(),
            storage=StorageSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings singleton"""
    return Settings.load_from_env_file()


def get_recording_settings() -> RecordingSettings:
    return get_settings().recording


def get_score_settings() -> ScoreSettings:
    return get_settings().score
