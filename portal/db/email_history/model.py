"""
SQLAlchemy model for sent status-update emails.

Each row is an append-only record of one email sent for a project. Its
``changes_snapshot`` holds the task-status map at send time (the baseline for
the next diff) together with the change summary that was reported.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.database import Base


class EmailHistory(Base):
    """Record of a status-update email."""

    __tablename__ = "email_history"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        server_default=text("gen_random_uuid()"),
        comment="Email record UUID",
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Recipient user ID",
    )
    project_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    sent_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email_subject: Mapped[str] = mapped_column(Text, nullable=False)
    personal_message: Mapped[str] = mapped_column(Text, nullable=False)
    changes_snapshot: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        comment="Task statuses at send time plus the reported change summary",
    )
    email_sent_successfully: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        # Latest email per project
        Index("idx_email_history_project_sent", "project_id", "sent_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<EmailHistory(id={self.id}, project_id={self.project_id}, "
            f"sent_at={self.sent_at})>"
        )

    def to_dict(self) -> dict[str, Any]:
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
