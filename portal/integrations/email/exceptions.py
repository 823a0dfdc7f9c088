"""Exception classes for outgoing email delivery."""

from typing import Any


class MailError(Exception):
    """Base exception for all email delivery errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ) -> None:
        """Initialize MailError.

        Args:
            message: Error message
            status_code: HTTP status code returned by the provider, if any
            response_data: Response body returned by the provider, if any
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data

    def __str__(self) -> str:
        if self.status_code:
            return f"Mail Error ({self.status_code}): {self.message}"
        return f"Mail Error: {self.message}"


class MailAuthenticationError(MailError):
    """Raised when the provider rejects the API key (401/403)."""

    def __init__(
        self,
        message: str = "Invalid email API key",
        status_code: int = 401,
        response_data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, response_data=response_data)


class MailValidationError(MailError):
    """Raised when the provider rejects the message itself (400/422)."""

    def __init__(
        self,
        message: str = "Email rejected by provider",
        status_code: int = 422,
        response_data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, response_data=response_data)


class MailRateLimitError(MailError):
    """Raised when the provider rate limit is exceeded (429)."""

    def __init__(
        self,
        message: str = "Email rate limit exceeded",
        response_data: dict[str, Any] | None = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message=message, status_code=429, response_data=response_data)
        self.retry_after = retry_after


class MailServerError(MailError):
    """Raised for provider server errors (5xx)."""

    def __init__(
        self,
        message: str = "Email provider server error",
        status_code: int = 500,
        response_data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, response_data=response_data)


class MailConnectionError(MailError):
    """Raised when the provider cannot be reached or times out."""

    def __init__(
        self,
        message: str = "Failed to connect to email provider",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message=message)
        self.original_error = original_error
