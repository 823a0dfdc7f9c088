"""
FastAPI dependencies for the update email service.
"""

from fastapi import Depends

from portal.config import get_app_settings
from portal.integrations.email.base import EmailProvider
from portal.integrations.email.factory import get_email_provider
from portal.store.base import ProjectStore
from portal.store.dependencies import get_project_store
from portal.updates.service import UpdateService


def get_update_service(
    store: ProjectStore = Depends(get_project_store),
    email_provider: EmailProvider = Depends(get_email_provider),
) -> UpdateService:
    """
    FastAPI dependency for getting the update service.

    Args:
        store: Project store for the request
        email_provider: Configured email provider

    Returns:
        UpdateService: Service instance with injected store and provider
    """
    return UpdateService(store, email_provider, get_app_settings().studio_name)
