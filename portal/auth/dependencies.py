"""
Authentication dependencies.

Admin endpoints are protected by a bearer token issued out of band and set
through ``ADMIN_API_TOKEN``.
"""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portal.auth.schemas import AdminUser
from portal.config import get_app_settings
from portal.utils.logger import logger

security = HTTPBearer(auto_error=False)


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AdminUser:
    """
    Require a valid admin bearer token.

    Returns:
        AdminUser: The admin identity configured for the token

    Raises:
        HTTPException: 500 if no token is configured, 401 if the token is missing or wrong
    """
    settings = get_app_settings()
    token = settings.admin_api_token.get_secret_value() if settings.admin_api_token else ""
    if not token:
        logger.error("Admin API token is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin authentication not configured",
        )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not secrets.compare_digest(credentials.credentials.encode(), token.encode()):
        logger.warning("Rejected admin request with invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AdminUser(id=settings.admin_user_id)
