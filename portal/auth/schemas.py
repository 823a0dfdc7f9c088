"""
Auth-specific Pydantic schemas.
"""

from pydantic import BaseModel, Field


class AdminUser(BaseModel):
    """The authenticated admin making a request."""

    id: str = Field(..., description="User ID recorded on admin edits and sends")
    is_admin: bool = Field(default=True, description="Whether the caller is an admin")
