"""
Abstract base class for email providers.
"""

from abc import ABC, abstractmethod

from portal.integrations.email.schemas import EmailSendResult, OutgoingEmail


class EmailProvider(ABC):
    """Interface every outgoing email provider implements."""

    provider_name: str = "unknown"

    @abstractmethod
    async def send_email(self, message: OutgoingEmail) -> EmailSendResult:
        """
        Send a single email.

        Args:
            message: Recipients, subject, bodies and attachments

        Returns:
            EmailSendResult: Provider acknowledgement

        Raises:
            MailError: If the provider rejects the message or cannot be reached
        """
        pass
