"""
Email provider factory for dependency injection.

The provider is chosen by ``EMAIL_PROVIDER`` and shared for the lifetime of
the process.
"""

from portal.integrations.email.base import EmailProvider
from portal.integrations.email.config import get_email_settings
from portal.integrations.email.constants import EmailProviderType
from portal.integrations.email.providers.mock import MockEmailProvider
from portal.integrations.email.providers.resend import ResendEmailProvider
from portal.utils.logger import logger


def create_email_provider() -> EmailProvider:
    """
    Create an email provider instance based on configuration.

    Returns:
        EmailProvider: The configured email provider instance

    Raises:
        ValueError: If the configured provider is not supported
    """
    settings = get_email_settings()

    if settings.provider == EmailProviderType.RESEND:
        logger.info("Creating Resend email provider")
        return ResendEmailProvider(settings)
    elif settings.provider == EmailProviderType.MOCK:
        logger.info("Creating mock email provider")
        return MockEmailProvider()
    else:
        raise ValueError(f"Unsupported email provider: {settings.provider}")


_email_provider: EmailProvider | None = None


def get_email_provider() -> EmailProvider:
    """
    Get the global email provider instance (also used as a FastAPI dependency).

    Returns:
        EmailProvider: The global provider instance
    """
    global _email_provider
    if _email_provider is None:
        _email_provider = create_email_provider()
    return _email_provider


def set_email_provider(provider: EmailProvider | None) -> None:
    """
    Set the global email provider instance.

    Args:
        provider: The provider to set, or None to recreate it from settings
    """
    global _email_provider
    _email_provider = provider


async def close_email_provider() -> None:
    """Close the global provider's HTTP client, if any, and drop it."""
    global _email_provider
    if isinstance(_email_provider, ResendEmailProvider):
        await _email_provider.close()
    _email_provider = None
