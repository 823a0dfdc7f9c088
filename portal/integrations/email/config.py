"""
Configuration for outgoing email.

Settings are read from ``EMAIL_``-prefixed environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from portal.integrations.email.constants import EmailProviderType
from portal.utils.logger import logger


class EmailSettings(BaseSettings):
    """Configuration for the email provider using Pydantic settings."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore", env_prefix="EMAIL_")

    provider: EmailProviderType = Field(
        default=EmailProviderType.MOCK, description="Email provider (resend or mock)"
    )
    api_key: str | None = Field(default=None, description="Resend API key")
    base_url: str = Field(default="https://api.resend.com", description="Resend API base URL")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    from_address: str = Field(
        default="AppCatalyst <noreply@appcatalyst.org>",
        description="Sender shown on outgoing emails",
    )
    reply_to: str | None = Field(default=None, description="Optional reply-to address")


_email_settings: EmailSettings | None = None


def get_email_settings() -> EmailSettings:
    """
    Get the global email settings instance.

    Returns:
        EmailSettings: The global settings instance
    """
    global _email_settings
    if _email_settings is None:
        _email_settings = EmailSettings()
        logger.info("EmailSettings loaded", provider=_email_settings.provider.value)
    return _email_settings


def set_email_settings(settings: EmailSettings) -> None:
    """
    Set the global email settings instance.

    Args:
        settings: The settings to set
    """
    global _email_settings
    _email_settings = settings
