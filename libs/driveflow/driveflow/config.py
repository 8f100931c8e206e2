"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from driveflow.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env", "../../.env")

_REPO_ROOT = Path(__file__).resolve().parents[3]

GIB = 1024 * 1024 * 1024
MIB = 1024 * 1024


def _resolve_repo_path(value: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        return raw
    p = Path(raw)
    if p.is_absolute():
        return str(p)
    return str((_REPO_ROOT / p).resolve())


class GoogleAuthConfig(BaseSettings):
    """Google credentials shared by the Drive, transcription and Vertex clients."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service account JSON file; empty -> Application Default Credentials.
    credentials_file: str | None = None
    project_id: str | None = None


class DriveConfig(BaseSettings):
    """Watched Drive folder and scan policy."""

    model_config = SettingsConfigDict(
        env_prefix="DRIVE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    folder_id: str = ""
    max_duration_s: float = Field(default=3 * 3600, gt=0)
    large_file_bytes: int = Field(default=1 * GIB, ge=1)
    default_lookback_s: int = Field(default=3600, ge=0)
    max_folders: int = Field(default=5000, ge=1)
    query_chunk_size: int = Field(default=20, ge=1)
    video_extensions: list[str] = [".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v", ".wmv", ".flv"]

    prompt_folder_names: list[str] = ["_config", "config", "Config", "prompts", "Prompts"]
    prompt_file_names: list[str] = ["prompt.txt", "prompt.md", "Prompt", "prompt"]

    upload_artifacts: bool = False
    trash_source: bool = False


class StorageConfig(BaseSettings):
    """Working storage (S3-compatible object store or local directory)."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: str = "s3"  # "s3" | "local"
    endpoint: str = "https://storage.googleapis.com"
    access_key: str = ""
    secret_key: str = ""
    region: str | None = None
    uri_scheme: str = "gs"
    local_dir: str = "./data/buckets"
    multipart_chunk_bytes: int = Field(default=16 * MIB, ge=5 * MIB)

    input_bucket: str = ""
    transcript_bucket: str = ""
    state_file_name: str = "drive-poller-state.json"
    config_prefix: str = "_config/"

    @model_validator(mode="after")
    def _resolve_paths(self) -> "StorageConfig":
        self.local_dir = _resolve_repo_path(self.local_dir)
        return self


class TranscriptionConfig(BaseSettings):
    """Speech transcription job submission."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIPTION_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "video_intelligence"
    base_url: str = "https://videointelligence.googleapis.com/v1"
    language_code: str = "en-US"
    enable_automatic_punctuation: bool = True
    output_suffix: str = ".json"
    timeout: float = Field(default=60.0, gt=0)


class AnalysisConfig(BaseSettings):
    """AI analysis of finished transcripts."""

    model_config = SettingsConfigDict(
        env_prefix="ANALYSIS_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_model: str = "gemini-2.5-flash"
    min_words: int = Field(default=10, ge=0)
    max_output_tokens: int = Field(default=8192, ge=1)
    temperature: float = Field(default=0.4, ge=0)
    timeout: float = Field(default=300.0, gt=0)

    gemini_api_key: str = ""
    vertex_project: str | None = None
    vertex_region: str = "us-east5"
    anthropic_version: str = "vertex-2023-10-16"


class MailConfig(BaseSettings):
    """Notification e-mail delivery."""

    model_config = SettingsConfigDict(
        env_prefix="MAIL_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    user: str = ""
    password: str = ""
    to: str = ""
    subject_prefix: str = "[Drive Automation]"
    notify_on_start: bool = True
    timeout: float = Field(default=30.0, gt=0)
    preview_chars: int = Field(default=2000, ge=0)

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password and self.to)


class WorkerConfig(BaseSettings):
    """Worker loops and queue policy."""

    model_config = SettingsConfigDict(
        env_prefix="WORKER_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    scan_interval_s: float = Field(default=180.0, gt=0)
    event_queue: str = "driveflow:events"
    delayed_event_queue: str = "driveflow:events:delayed"
    transfer_queue: str = "driveflow:transfers"
    event_max_attempts: int = Field(default=5, ge=1)
    event_retry_delay_s: float = Field(default=10.0, ge=0)
    transfer_max_attempts: int = Field(default=3, ge=1)
    transfer_timeout_s: float = Field(default=24 * 3600, gt=0)


class DashboardConfig(BaseSettings):
    """Dashboard access."""

    model_config = SettingsConfigDict(
        env_prefix="DASHBOARD_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    password: str = ""
    realm: str = "Transcription Dashboard"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    log_dir: str = "./logs"
    redis_url: str = "redis://localhost:6379"

    google: GoogleAuthConfig = Field(default_factory=GoogleAuthConfig)
    drive: DriveConfig = Field(default_factory=DriveConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    mail: MailConfig = Field(default_factory=MailConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)

    # Logging
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        # Apps may run with a different CWD; keep paths stable.
        self.log_dir = _resolve_repo_path(self.log_dir)
        return self

    @model_validator(mode="after")
    def _validate_buckets(self) -> "Settings":
        input_bucket = self.storage.input_bucket.strip()
        transcript_bucket = self.storage.transcript_bucket.strip()
        if input_bucket and input_bucket == transcript_bucket:
            raise ConfigurationError(
                "STORAGE_INPUT_BUCKET and STORAGE_TRANSCRIPT_BUCKET must differ"
            )
        return self

    def require(self, **values: Any) -> None:
        """Raise ConfigurationError naming every empty setting in `values`."""
        missing = [name for name, value in values.items() if not str(value or "").strip()]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(sorted(missing))}")
