"""
Mapping of domain errors onto HTTP responses.
"""

from http import HTTPStatus

from fastapi import HTTPException

from portal.integrations.email.exceptions import MailError
from portal.store.base import StoreError
from portal.utils.logger import logger


def store_http_error(error: StoreError) -> HTTPException:
    """404 for missing rows, 409 for conflicts, 500 otherwise."""
    if error.error_code == "NOT_FOUND":
        return HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=error.message)
    if error.error_code == "CONFLICT":
        return HTTPException(status_code=HTTPStatus.CONFLICT, detail=error.message)
    logger.error("Store error", error_code=error.error_code, error_message=error.message)
    return HTTPException(status_code=HTTPStatus.INTERNAL_SERVER_ERROR, detail=error.message)


def mail_http_error(error: MailError) -> HTTPException:
    logger.error(
        "Email delivery failed", error_message=error.message, status_code=error.status_code
    )
    return HTTPException(
        status_code=HTTPStatus.BAD_GATEWAY, detail=f"Failed to send email: {error.message}"
    )
