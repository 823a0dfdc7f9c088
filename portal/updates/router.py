"""
Update email router.
"""

from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Query

from portal.auth.dependencies import get_current_admin
from portal.auth.schemas import AdminUser
from portal.integrations.email.exceptions import MailError
from portal.store.base import StoreError
from portal.updates.dependencies import get_update_service
from portal.updates.schemas import (
    ChangeCheck,
    EmailHistoryItem,
    SendUpdateRequest,
    SendUpdateResponse,
)
from portal.updates.service import SnapshotConflictError, UpdateService
from portal.utils.errors import mail_http_error, store_http_error

router = APIRouter(prefix="/updates", tags=["Updates"])


@router.get("/history", response_model=list[EmailHistoryItem])
async def list_email_history(
    limit: int = Query(100, ge=1, le=500, description="Maximum number of emails"),
    search: str | None = Query(None, description="Filter by recipient, project or status"),
    admin: AdminUser = Depends(get_current_admin),
    service: UpdateService = Depends(get_update_service),
) -> list[EmailHistoryItem]:
    """List sent update emails, newest first."""
    try:
        return await service.list_email_history(limit=limit, search=search)
    except StoreError as e:
        raise store_http_error(e) from e


@router.get("/{project_id}/changes", response_model=ChangeCheck)
async def check_changes(
    project_id: str,
    admin: AdminUser = Depends(get_current_admin),
    service: UpdateService = Depends(get_update_service),
) -> ChangeCheck:
    """Summarize what changed in a project since its last update email."""
    try:
        return await service.check_changes(project_id)
    except StoreError as e:
        raise store_http_error(e) from e


@router.post("/{project_id}/send", response_model=SendUpdateResponse)
async def send_update(
    project_id: str,
    request: SendUpdateRequest,
    admin: AdminUser = Depends(get_current_admin),
    service: UpdateService = Depends(get_update_service),
) -> SendUpdateResponse:
    """
    Send an update email for a project and record the new baseline.

    Raises:
        HTTPException: 400 for a blank message, 409 if another update was sent
            since ``expected_last_sent_at``, 502 if the email provider fails
    """
    try:
        return await service.send_update(
            project_id,
            personal_message=request.personal_message,
            sent_by=admin.id,
            user_id=request.user_id,
            expected_last_sent_at=request.expected_last_sent_at,
        )
    except ValueError as e:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(e)) from e
    except SnapshotConflictError as e:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=e.message) from e
    except StoreError as e:
        raise store_http_error(e) from e
    except MailError as e:
        raise mail_http_error(e) from e
