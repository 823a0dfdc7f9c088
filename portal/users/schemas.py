"""
Pydantic schemas for admin user management.
"""

from pydantic import BaseModel, ConfigDict, Field

from portal.store.schemas import UserRecord


class ProfileUpdate(BaseModel):
    """Profile details a client fills in after signing up."""

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    company: str | None = None
    phone: str | None = None
    app_name: str | None = Field(None, description="Working name of the app to build")


class ProfileResult(BaseModel):
    user: UserRecord
    admin_notified: bool = Field(False, description="Whether the studio admin was emailed")


class UserCreateRequest(BaseModel):
    """A client account created by an admin."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str | None = None
    last_name: str | None = None
    temporary_password: str | None = Field(
        None,
        description="Sign-in password issued by the auth provider; only included in the welcome email",
    )


class UserCreateResult(BaseModel):
    user: UserRecord
    welcome_email_sent: bool = Field(False, description="Whether the welcome email went out")
