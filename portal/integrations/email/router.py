"""
Email webhook router.
"""

from fastapi import APIRouter, Depends

from portal.integrations.email.schemas import WebhookAck, WebhookEvent
from portal.integrations.email.webhook import EmailWebhookService
from portal.store.base import ProjectStore
from portal.store.dependencies import get_project_store

router = APIRouter(prefix="/email", tags=["Email"])


def get_webhook_service(
    store: ProjectStore = Depends(get_project_store),
) -> EmailWebhookService:
    return EmailWebhookService(store)


@router.post("/webhook", response_model=WebhookAck)
async def receive_email_event(
    event: WebhookEvent,
    service: EmailWebhookService = Depends(get_webhook_service),
) -> WebhookAck:
    """
    Receive a delivery event from the email provider.

    Always answers 200 for well-formed events, including ones that are ignored.
    """
    return await service.handle_event(event)
