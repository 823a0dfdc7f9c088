"""
Email integration constants and enums.
"""

from enum import Enum


class EmailProviderType(str, Enum):
    """Available email providers."""

    RESEND = "resend"
    MOCK = "mock"


class ResendEndpoint(str, Enum):
    """Resend API endpoints."""

    EMAILS = "/emails"


class EmailDeliveryStatus(str, Enum):
    """Last known delivery state of the newest email sent to a user."""

    SENT = "sent"
    DELIVERED = "delivered"
    OPENED = "opened"
    CLICKED = "clicked"


class WebhookEventType(str, Enum):
    """Delivery events posted by the email provider."""

    SENT = "email.sent"
    DELIVERED = "email.delivered"
    OPENED = "email.opened"
    CLICKED = "email.clicked"


WEBHOOK_STATUS_MAP: dict[WebhookEventType, EmailDeliveryStatus] = {
    WebhookEventType.SENT: EmailDeliveryStatus.SENT,
    WebhookEventType.DELIVERED: EmailDeliveryStatus.DELIVERED,
    WebhookEventType.OPENED: EmailDeliveryStatus.OPENED,
    WebhookEventType.CLICKED: EmailDeliveryStatus.CLICKED,
}
