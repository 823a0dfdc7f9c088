"""
Resend email provider.

Sends messages through the Resend REST API with an ``httpx.AsyncClient``
and maps error responses onto the ``MailError`` hierarchy.
"""

from typing import Any

import httpx

from portal.integrations.email.base import EmailProvider
from portal.integrations.email.config import EmailSettings
from portal.integrations.email.constants import EmailProviderType, ResendEndpoint
from portal.integrations.email.exceptions import (
    MailAuthenticationError,
    MailConnectionError,
    MailError,
    MailRateLimitError,
    MailServerError,
    MailValidationError,
)
from portal.integrations.email.schemas import EmailSendResult, OutgoingEmail
from portal.utils.logger import logger


def _response_data(response: httpx.Response) -> dict[str, Any] | None:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


class ResendEmailProvider(EmailProvider):
    """Async provider for the Resend API."""

    provider_name = EmailProviderType.RESEND.value

    def __init__(self, settings: EmailSettings) -> None:
        """Initialize the Resend provider.

        Args:
            settings: Email settings with the API key and sender address

        Raises:
            ValueError: If no API key is configured
        """
        if not settings.api_key:
            raise ValueError("EMAIL_API_KEY is required for the Resend provider")
        self.settings = settings
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> None:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                headers={
                    "Authorization": f"Bearer {self.settings.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.settings.timeout,
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _build_payload(self, message: OutgoingEmail) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": self.settings.from_address,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            payload["text"] = message.text
        if message.cc:
            payload["cc"] = message.cc
        reply_to = message.reply_to or self.settings.reply_to
        if reply_to:
            payload["reply_to"] = reply_to
        if message.attachments:
            payload["attachments"] = [
                {"filename": a.filename, "content": a.encoded()} for a in message.attachments
            ]
        return payload

    async def send_email(self, message: OutgoingEmail) -> EmailSendResult:
        await self._ensure_client()
        logger.info(
            "Sending email via Resend",
            to=message.to,
            subject=message.subject,
            attachment_count=len(message.attachments),
        )

        try:
            response = await self._client.post(
                ResendEndpoint.EMAILS.value, json=self._build_payload(message)
            )
        except httpx.TimeoutException as e:
            raise MailConnectionError("Email provider request timed out", original_error=e) from e
        except httpx.RequestError as e:
            raise MailConnectionError(f"Request error: {e}", original_error=e) from e

        data = _response_data(response)
        if response.status_code in (401, 403):
            raise MailAuthenticationError(status_code=response.status_code, response_data=data)
        elif response.status_code in (400, 422):
            raise MailValidationError(
                f"Email rejected: {response.text}",
                status_code=response.status_code,
                response_data=data,
            )
        elif response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise MailRateLimitError(
                response_data=data,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        elif response.status_code >= 500:
            raise MailServerError(
                f"Server error: {response.status_code}",
                status_code=response.status_code,
                response_data=data,
            )
        elif response.status_code >= 400:
            raise MailError(
                f"HTTP error: {response.status_code}",
                status_code=response.status_code,
                response_data=data,
            )

        message_id = data.get("id") if data else None
        logger.info("Email accepted by Resend", message_id=message_id, to=message.to)
        return EmailSendResult(message_id=message_id, provider=self.provider_name)
