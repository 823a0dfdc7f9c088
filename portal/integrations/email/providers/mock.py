"""
In-memory email provider for tests and local development.
"""

import uuid

from portal.integrations.email.base import EmailProvider
from portal.integrations.email.constants import EmailProviderType
from portal.integrations.email.exceptions import MailError
from portal.integrations.email.schemas import EmailSendResult, OutgoingEmail
from portal.utils.logger import logger


class MockEmailProvider(EmailProvider):
    """Records sent messages instead of delivering them."""

    provider_name = EmailProviderType.MOCK.value

    def __init__(self, fail_with: MailError | None = None):
        """
        Args:
            fail_with: Error to raise on every send, for exercising failure paths
        """
        self.sent: list[OutgoingEmail] = []
        self.fail_with = fail_with

    async def send_email(self, message: OutgoingEmail) -> EmailSendResult:
        if self.fail_with is not None:
            logger.warning("Mock email provider failing send", to=message.to)
            raise self.fail_with

        self.sent.append(message)
        logger.info("Mock email recorded", to=message.to, subject=message.subject)
        return EmailSendResult(message_id=f"mock-{uuid.uuid4()}", provider=self.provider_name)
