"""
User management router.
"""

from http import HTTPStatus

from fastapi import APIRouter, Depends, Query

from portal.auth.dependencies import get_current_admin
from portal.auth.schemas import AdminUser
from portal.config import get_app_settings
from portal.integrations.email.base import EmailProvider
from portal.integrations.email.exceptions import MailError
from portal.integrations.email.factory import get_email_provider
from portal.store.base import ProjectStore, StoreError
from portal.store.dependencies import get_project_store
from portal.store.schemas import UserRecord
from portal.users.schemas import ProfileResult, ProfileUpdate, UserCreateRequest, UserCreateResult
from portal.users.service import UserService
from portal.utils.errors import mail_http_error, store_http_error

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(
    store: ProjectStore = Depends(get_project_store),
    email_provider: EmailProvider = Depends(get_email_provider),
) -> UserService:
    settings = get_app_settings()
    return UserService(
        store,
        email_provider,
        studio_name=settings.studio_name,
        login_url=settings.client_base_url,
        admin_email=settings.admin_notification_email,
    )


@router.get("", response_model=list[UserRecord])
async def list_users(
    approved: bool | None = Query(None, description="Filter by approval state"),
    is_admin: bool | None = Query(None, description="Filter by admin flag"),
    admin: AdminUser = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> list[UserRecord]:
    try:
        return await service.list_users(approved=approved, is_admin=is_admin)
    except StoreError as e:
        raise store_http_error(e) from e


@router.post("", response_model=UserCreateResult, status_code=HTTPStatus.CREATED)
async def create_user(
    request: UserCreateRequest,
    admin: AdminUser = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> UserCreateResult:
    """
    Create a client account and send the welcome email.

    Raises:
        HTTPException: 409 if the email is already registered
    """
    try:
        return await service.create_user(request)
    except StoreError as e:
        raise store_http_error(e) from e


@router.delete("/{user_id}", status_code=HTTPStatus.NO_CONTENT)
async def delete_user(
    user_id: str,
    admin: AdminUser = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> None:
    """Delete a user together with their projects and email history."""
    try:
        await service.delete_user(user_id)
    except StoreError as e:
        raise store_http_error(e) from e


@router.get("/{user_id}", response_model=UserRecord)
async def get_user(
    user_id: str,
    admin: AdminUser = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> UserRecord:
    try:
        return await service.get_user(user_id)
    except StoreError as e:
        raise store_http_error(e) from e


@router.post("/{user_id}/approve", response_model=UserRecord)
async def approve_user(
    user_id: str,
    admin: AdminUser = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> UserRecord:
    """
    Approve a client account and send the approval email.

    Raises:
        HTTPException: 404 for an unknown user, 502 if the email fails (the approval is kept)
    """
    try:
        return await service.approve_user(user_id)
    except StoreError as e:
        raise store_http_error(e) from e
    except MailError as e:
        raise mail_http_error(e) from e


@router.post("/{user_id}/unapprove", response_model=UserRecord)
async def revoke_approval(
    user_id: str,
    admin: AdminUser = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> UserRecord:
    """Return an account to pending approval."""
    try:
        return await service.revoke_approval(user_id)
    except StoreError as e:
        raise store_http_error(e) from e


@router.post("/{user_id}/profile", response_model=ProfileResult)
async def complete_profile(
    user_id: str,
    profile: ProfileUpdate,
    admin: AdminUser = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> ProfileResult:
    """Store a client's profile details and notify the studio admin."""
    try:
        return await service.complete_profile(user_id, profile)
    except StoreError as e:
        raise store_http_error(e) from e
