from portal.integrations.email.providers.mock import MockEmailProvider
from portal.integrations.email.providers.resend import ResendEmailProvider

__all__ = ["MockEmailProvider", "ResendEmailProvider"]
