"""
Milestone router.
"""

from fastapi import APIRouter, Depends

from portal.auth.dependencies import get_current_admin
from portal.auth.schemas import AdminUser
from portal.config import get_app_settings
from portal.integrations.email.base import EmailProvider
from portal.integrations.email.factory import get_email_provider
from portal.milestones.schemas import MilestoneUpdateRequest, MilestoneUpdateResult
from portal.milestones.service import MilestoneService
from portal.store.base import ProjectStore, StoreError
from portal.store.dependencies import get_project_store
from portal.utils.errors import store_http_error

router = APIRouter(prefix="/milestones", tags=["Milestones"])


def get_milestone_service(
    store: ProjectStore = Depends(get_project_store),
    email_provider: EmailProvider = Depends(get_email_provider),
) -> MilestoneService:
    settings = get_app_settings()
    return MilestoneService(
        store,
        email_provider,
        studio_name=settings.studio_name,
        cc_address=settings.admin_notification_email,
    )


@router.put("/{user_id}", response_model=MilestoneUpdateResult)
async def update_milestone(
    user_id: str,
    request: MilestoneUpdateRequest,
    admin: AdminUser = Depends(get_current_admin),
    service: MilestoneService = Depends(get_milestone_service),
) -> MilestoneUpdateResult:
    """
    Update a client's discovery, proposal or invoice milestone.

    Emailing the client is best effort; ``email_sent`` reports whether it worked.
    """
    try:
        return await service.update_milestone(user_id, request.update)
    except StoreError as e:
        raise store_http_error(e) from e
