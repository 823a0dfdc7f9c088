"""
SQLAlchemy model for portal users.

Authentication is handled by the external auth provider; this table stores
the profile, approval state, milestone progress and last email delivery
status for each client (and the admin accounts).
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.database import Base


class User(Base):
    """User model keyed by the auth provider's user ID."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(255), primary_key=True, comment="Auth provider user ID"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="User email address",
    )

    # Profile
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    app_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    profile_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    # Milestones
    discovery_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", comment="pending|scheduled|complete"
    )
    discovery_scheduled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    proposal_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", comment="pending|sent|reviewed"
    )
    proposal_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    invoice_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", comment="pending|sent|paid"
    )
    invoice_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    invoice_amount_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Delivery status reported by the email provider webhook
    last_email_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    last_email_opened_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Record creation timestamp",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        comment="Record last update timestamp",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, approved={self.approved})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a plain dictionary of column values."""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
