"""Provider factory and registry."""

from __future__ import annotations

from driveflow.config import Settings
from driveflow.exceptions import ConfigurationError
from driveflow.providers.drive.base import DriveClient
from driveflow.providers.google_auth import GoogleCredentials
from driveflow.providers.llm.base import LLMProvider
from driveflow.providers.llm.catalog import model_family, vertex_model_id
from driveflow.providers.mail.base import Mailer
from driveflow.providers.transcription.base import TranscriptionProvider


def get_google_credentials(settings: Settings) -> GoogleCredentials:
    return GoogleCredentials(settings.google.credentials_file)


def get_drive_client(settings: Settings, credentials: GoogleCredentials) -> DriveClient:
    from driveflow.providers.drive.google_drive import GoogleDriveClient

    return GoogleDriveClient(credentials, query_chunk_size=settings.drive.query_chunk_size)


def get_transcription_provider(
    settings: Settings, credentials: GoogleCredentials
) -> TranscriptionProvider:
    cfg = settings.transcription
    provider_type = str(cfg.provider or "video_intelligence").strip().lower()

    match provider_type:
        case "video_intelligence" | "google":
            from driveflow.providers.transcription.video_intelligence import VideoIntelligenceProvider

            return VideoIntelligenceProvider(credentials, base_url=cfg.base_url, timeout=cfg.timeout)
        case _:
            raise ConfigurationError(f"Unknown transcription provider: {provider_type}")


def get_llm_provider(
    model_id: str, settings: Settings, credentials: GoogleCredentials | None = None
) -> LLMProvider:
    """Build the provider for one analysis model id."""
    cfg = settings.analysis
    model_id = str(model_id or "").strip()
    if not model_id:
        raise ConfigurationError("LLM model id is empty")

    match model_family(model_id):
        case "gemini":
            from driveflow.providers.llm.gemini import GeminiProvider

            api_key = str(cfg.gemini_api_key or "").strip()
            if not api_key:
                raise ConfigurationError("Gemini provider requires ANALYSIS_GEMINI_API_KEY")
            return GeminiProvider(api_key=api_key, model=model_id)
        case "claude":
            from driveflow.providers.llm.claude_vertex import ClaudeVertexProvider

            project = str(cfg.vertex_project or settings.google.project_id or "").strip()
            if not project:
                raise ConfigurationError(
                    "Claude provider requires ANALYSIS_VERTEX_PROJECT or GOOGLE_PROJECT_ID"
                )
            return ClaudeVertexProvider(
                credentials or get_google_credentials(settings),
                project_id=project,
                region=cfg.vertex_region,
                model=vertex_model_id(model_id),
                anthropic_version=cfg.anthropic_version,
                timeout=cfg.timeout,
            )
        case family:
            raise ConfigurationError(f"Unknown LLM family {family!r} for model {model_id!r}")


def get_mailer(settings: Settings) -> Mailer:
    from driveflow.providers.mail.smtp import SmtpMailer

    cfg = settings.mail
    return SmtpMailer(
        host=cfg.smtp_host,
        port=cfg.smtp_port,
        user=cfg.user,
        password=cfg.password,
        to=cfg.to,
        subject_prefix=cfg.subject_prefix,
        timeout=cfg.timeout,
    )


__all__ = [
    "get_drive_client",
    "get_google_credentials",
    "get_llm_provider",
    "get_mailer",
    "get_transcription_provider",
]
