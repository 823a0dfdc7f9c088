"""
Delivery-status webhook.

The email provider posts sent/delivered/opened/clicked events; the first
recipient's user row records the latest status so the admin dashboard can
show whether the client read their last update.
"""

from datetime import UTC, datetime

from portal.integrations.email.constants import (
    WEBHOOK_STATUS_MAP,
    EmailDeliveryStatus,
    WebhookEventType,
)
from portal.integrations.email.schemas import WebhookAck, WebhookEvent
from portal.store.base import ProjectStore
from portal.utils.logger import logger

_READ_STATUSES = {EmailDeliveryStatus.OPENED, EmailDeliveryStatus.CLICKED}


class EmailWebhookService:
    """Applies provider delivery events to user records."""

    def __init__(self, store: ProjectStore):
        self.store = store

    async def handle_event(self, event: WebhookEvent) -> WebhookAck:
        """
        Record a delivery event against the recipient's user row.

        Unknown event types and unknown recipients are acknowledged without
        changes so the provider does not retry them.
        """
        try:
            event_type = WebhookEventType(event.type)
        except ValueError:
            logger.info("Ignoring unhandled email event", event_type=event.type)
            return WebhookAck(detail=f"Ignored event type {event.type}")

        if not event.data.to:
            logger.info("Email event has no recipient", event_type=event.type)
            return WebhookAck(detail="No recipient")

        recipient = event.data.to[0]
        user = await self.store.get_user_by_email(recipient)
        if user is None:
            logger.info("No user for email event recipient", recipient=recipient)
            return WebhookAck(detail="Unknown recipient")

        delivery_status = WEBHOOK_STATUS_MAP[event_type]
        fields: dict[str, object] = {"last_email_status": delivery_status.value}
        if delivery_status in _READ_STATUSES:
            fields["last_email_opened_at"] = event.created_at or datetime.now(UTC)

        await self.store.update_user(user.id, fields)
        logger.info(
            "Recorded email delivery status",
            user_id=user.id,
            status=delivery_status.value,
            email_id=event.data.email_id,
        )
        return WebhookAck(updated_user_ids=[user.id])
