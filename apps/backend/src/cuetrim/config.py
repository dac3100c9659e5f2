"""Configuration management for cuetrim."""

from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class NegativeMarkerPolicy(str, Enum):
    """What to do when trimming pushes a marker below zero."""

    REJECT = "reject"
    PASSTHROUGH = "passthrough"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CUETRIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Inventory API
    api_url: str = "http://localhost:8080"
    api_path: str = "/ras/inventory"
    client_id: str = "cuetrim"
    http_timeout: float = 30.0

    # Directories
    audio_root: Path = Path("./audio")
    temp_dir: Path = Path("./temp")
    import_dir: Path = Path("./import")

    # Transcoder
    ffmpeg_path: str = "ffmpeg"
    transcode_timeout: float = 600.0

    # Ingestion wait
    import_poll_interval: float = 1.0
    import_timeout: float = 60.0
    import_retries: int = 2
    import_backoff: float = 2.0
    import_settle_seconds: float = 0.0

    # Pipeline
    negative_markers: NegativeMarkerPolicy = NegativeMarkerPolicy.REJECT
    abort_on_update_rejection: bool = True
    dry_run: bool = False

    log_level: str = "INFO"

    def ensure_directories(self) -> None:
        """Create working directories if they don't exist."""
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        self.import_dir.mkdir(parents=True, exist_ok=True)


def get_settings() -> Settings:
    """Load a fresh settings instance from the environment."""
    return Settings()

