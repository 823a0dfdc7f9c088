"""
Pydantic schemas for outgoing email and provider webhooks.
"""

import base64
from datetime import datetime

from pydantic import BaseModel, Field


class EmailAttachment(BaseModel):
    """A file attached to an outgoing email."""

    filename: str = Field(..., description="File name shown to the recipient")
    content: bytes = Field(..., description="Raw file bytes")
    content_type: str = Field(default="application/pdf", description="MIME type")

    def encoded(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


class OutgoingEmail(BaseModel):
    """A message handed to an email provider."""

    to: list[str] = Field(..., min_length=1, description="Recipient addresses")
    subject: str
    html: str
    text: str | None = None
    cc: list[str] = Field(default_factory=list)
    reply_to: str | None = None
    attachments: list[EmailAttachment] = Field(default_factory=list)


class EmailSendResult(BaseModel):
    """Provider acknowledgement of an accepted message."""

    message_id: str | None = Field(None, description="Provider message ID")
    provider: str


class WebhookEmailData(BaseModel):
    email_id: str | None = None
    to: list[str] = Field(default_factory=list)
    subject: str | None = None


class WebhookEvent(BaseModel):
    """Delivery event posted by the email provider."""

    type: str = Field(..., description="Event type, e.g. email.opened")
    created_at: datetime | None = None
    data: WebhookEmailData = Field(default_factory=WebhookEmailData)


class WebhookAck(BaseModel):
    received: bool = True
    updated_user_ids: list[str] = Field(default_factory=list)
    detail: str | None = None
