"""Core application configuration and settings.

Handles environment variables, GCP credentials, and provider settings.
"""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from google.auth import default
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from pydantic import Field
from pydantic_settings import BaseSettings

from roleplay_tutor.core.logging import get_logger

logger = get_logger(__name__)

# Load environment variables
ROOT = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT / ".env", override=True)
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Google Cloud Platform
    project_id: str = Field(
        default_factory=lambda: (
            os.getenv("PROJECT_ID")
            or os.getenv("GOOGLE_CLOUD_PROJECT")
            or os.getenv("GCP_PROJECT")
            or ""
        ),
        alias="PROJECT_ID"
    )
    region: str = Field(
        default_factory=lambda: (
            os.getenv("REGION")
            or os.getenv("GOOGLE_CLOUD_REGION")
            or os.getenv("LOCATION")
            or "us-central1"
        ),
        alias="REGION"
    )
    service_account_file: str = Field(
        default_factory=lambda: (
            os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
            or os.getenv("SERVICE_ACCOUNT_FILE")
            or ""
        ),
        alias="GOOGLE_APPLICATION_CREDENTIALS"
    )

    # LLM models
    feedback_model: str = Field(default="gemini-2.0-flash", alias="FEEDBACK_MODEL")
    tutor_chat_model: str = Field(default="gemini-2.0-flash", alias="TUTOR_CHAT_MODEL")

    # Speech-to-text
    speech_language_code: str = Field(default="en-US", alias="SPEECH_LANGUAGE_CODE")

    # Text-to-speech (ElevenLabs)
    elevenlabs_api_key: Optional[str] = Field(default=None, alias="ELEVENLABS_API_KEY")
    elevenlabs_base_url: str = Field(default="https://api.elevenlabs.io/v1", alias="ELEVENLABS_BASE_URL")
    elevenlabs_model_id: str = Field(default="eleven_monolingual_v1", alias="ELEVENLABS_MODEL_ID")
    elevenlabs_voice_id: Optional[str] = Field(default=None, alias="ELEVENLABS_VOICE_ID")
    elevenlabs_voice_id_davide: Optional[str] = Field(default=None, alias="ELEVENLABS_VOICE_ID_DAVIDE")
    elevenlabs_voice_id_phoebe: Optional[str] = Field(default=None, alias="ELEVENLABS_VOICE_ID_PHOEBE")
    elevenlabs_timeout_seconds: float = Field(default=30.0, alias="ELEVENLABS_TIMEOUT_SECONDS")

    # Redis Configuration
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_password: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")
    redis_db: int = Field(default=0, alias="REDIS_DB")

    # One-time password codes
    otp_ttl_minutes: int = Field(default=10, alias="OTP_TTL_MINUTES")
    otp_max_attempts: int = Field(default=5, alias="OTP_MAX_ATTEMPTS")

    # SMTP (OTP delivery)
    smtp_host: Optional[str] = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: Optional[str] = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: Optional[str] = Field(default=None, alias="SMTP_PASSWORD")
    smtp_from_email: str = Field(default="noreply@roleplay-tutor.app", alias="SMTP_FROM_EMAIL")

    # Application Settings
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ORIGINS"
    )

    class Config:
        case_sensitive = False
        env_file = ".env"
        populate_by_name = True
        extra = "ignore"

    def validate_required_settings(self):
        """Validate that required settings are present."""
        if not self.project_id:
            raise ValueError(
                "PROJECT_ID not set. Define PROJECT_ID in .env "
                "(or GOOGLE_CLOUD_PROJECT/GCP_PROJECT)."
            )
        if not self.region:
            raise ValueError(
                "REGION not set. Define REGION in .env "
                "(e.g., us-central1 or europe-west1)."
            )
        if not self.elevenlabs_api_key:
            logger.warning("ELEVENLABS_API_KEY is not set. Speech synthesis requests will fail.")


# Global settings instance
settings = Settings()


def get_vertex_credentials():
    """Get credentials for Vertex AI and Speech-to-Text (service account file or ADC).

    Returns:
        Credentials object

    Raises:
        Exception: If credential creation fails
    """
    try:
        scopes = ["https://www.googleapis.com/auth/cloud-platform"]
        if settings.service_account_file:
            return service_account.Credentials.from_service_account_file(
                settings.service_account_file,
                scopes=scopes
            )

        credentials, _ = default(scopes=scopes)
        credentials.refresh(Request())
        return credentials

    except Exception as e:
        logger.error(f"Error creating Google credentials: {e}")
        raise


# Validate settings on module import (only in non-test environments)
if settings.environment != "test":
    try:
        settings.validate_required_settings()
    except ValueError as e:
        logger.warning(f"Configuration Error: {e}")
        # Don't raise in development to allow partial setup
        if settings.environment == "production":
            raise
