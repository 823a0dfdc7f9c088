"""Application settings, read from the environment."""

from enum import Enum

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environments."""

    DEVELOPMENT = "dev"
    STAGING = "staging"
    PRODUCTION = "prod"


class StoreBackend(str, Enum):
    """Where project data is read from and written to."""

    POSTGRES = "postgres"
    MEMORY = "memory"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Current environment (dev, staging, or prod)",
    )
    client_base_url: str = Field(
        default="http://localhost:3000",
        description="Client portal URL; used for CORS and the login link in emails",
    )
    server_host: str = Field(default="0.0.0.0", description="Interface the API server binds to")
    server_port: int = Field(default=8080, description="Port the API server listens on")
    store_backend: StoreBackend = Field(
        default=StoreBackend.POSTGRES,
        description="Project store implementation (postgres or memory)",
    )

    # Studio identity used in outgoing emails
    studio_name: str = Field(
        default="AppCatalyst", description="Studio name shown in email signatures"
    )
    admin_notification_email: str | None = Field(
        default=None,
        description="Address notified when a client completes their profile",
    )

    # Admin API authentication
    admin_api_token: SecretStr | None = Field(
        default=None,
        description="Bearer token required on admin endpoints",
    )
    admin_user_id: str = Field(
        default="admin",
        description="User ID recorded as the author of admin actions",
    )

    @field_validator("client_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        # CORS origins never carry a trailing slash
        return value.rstrip("/")

    @field_validator("admin_notification_email")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


_app_settings: AppSettings | None = None


def get_app_settings() -> AppSettings:
    global _app_settings
    if _app_settings is None:
        _app_settings = AppSettings()
    return _app_settings


def set_app_settings(settings: AppSettings) -> None:
    """Replace the global settings instance (used by tests)."""
    global _app_settings
    _app_settings = settings
