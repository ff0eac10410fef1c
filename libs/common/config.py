from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    HANGAR_NAME: str = "Orlando"

    # Document store
    # "auto" picks the native SDK client when the process has service-account
    # credentials or runs on a managed runtime, and the REST client otherwise.
    STORE_CLIENT: Literal["auto", "rest", "native"] = "auto"
    FIRESTORE_PROJECT_ID: str = "test-project-id"
    FIRESTORE_DATABASE: str = "(default)"
    FIRESTORE_API_KEY: Optional[str] = None
    FIRESTORE_REST_URL: str = "https://firestore.googleapis.com/v1"
    FIRESTORE_EMULATOR_HOST: Optional[str] = None
    STORE_TIMEOUT: float = 10.0
    STORE_PAGE_SIZE: int = 300

    # Runtime hints used by STORE_CLIENT=auto
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None
    K_SERVICE: Optional[str] = None

    # Authorization
    SUDO_ADMIN_EMAILS: list[str] = ["thecaptain@captainspeak.com"]
    ACCESS_LOG_MAX_ENTRIES: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("SUDO_ADMIN_EMAILS")
    @classmethod
    def normalize_sudo_emails(cls, v: list[str]) -> list[str]:
        return [email.strip().lower() for email in v if email and email.strip()]

    @field_validator("FIRESTORE_REST_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
