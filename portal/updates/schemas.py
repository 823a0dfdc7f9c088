"""
Pydantic schemas for project update emails.

The change summary and snapshot are stored as JSON in
``email_history.changes_snapshot`` and returned to the admin UI, so their
field names serialize as camelCase while Python code uses snake_case.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from portal.projects.constants import TaskStatus


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========== Change Summary ==========


class ReviewTaskChange(CamelModel):
    task_id: str
    title: str
    screen_title: str


class CompletedTaskChange(CamelModel):
    title: str
    screen_title: str
    edited_at: datetime


class NewScreenChange(CamelModel):
    title: str
    created_at: datetime


class UpdatedScreenChange(CamelModel):
    title: str
    description: str | None = None
    edited_at: datetime


class NewTaskChange(CamelModel):
    title: str
    screen_title: str
    created_at: datetime


class ChangesSummary(CamelModel):
    """What changed in a project since the last update email."""

    review_tasks: list[ReviewTaskChange] = Field(default_factory=list)
    review_to_done: list[ReviewTaskChange] = Field(default_factory=list)
    review_to_progress: list[ReviewTaskChange] = Field(default_factory=list)
    completed_tasks: list[CompletedTaskChange] = Field(default_factory=list)
    new_screens: list[NewScreenChange] = Field(default_factory=list)
    updated_screens: list[UpdatedScreenChange] = Field(default_factory=list)
    new_tasks: list[NewTaskChange] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(
            (
                self.review_tasks,
                self.review_to_done,
                self.review_to_progress,
                self.completed_tasks,
                self.new_screens,
                self.updated_screens,
                self.new_tasks,
            )
        )


class ChangeSnapshot(CamelModel):
    """Task statuses and summary recorded when an update email is sent."""

    task_statuses: dict[str, TaskStatus] = Field(default_factory=dict)
    summary: ChangesSummary = Field(default_factory=ChangesSummary)


# ========== Check / Send ==========


class ChangeCheck(BaseModel):
    """Result of checking a project for changes since its last update email."""

    project_id: str
    project_name: str
    first_update: bool = Field(..., description="True when no update email was ever sent")
    has_changes: bool
    message: str | None = Field(None, description="Status line shown instead of a change list")
    last_sent_at: datetime | None = None
    summary: ChangesSummary


class SendUpdateRequest(BaseModel):
    personal_message: str = Field(..., description="Free-text message opening the email")
    user_id: str | None = Field(
        None, description="Recipient user ID (defaults to the project owner)"
    )
    expected_last_sent_at: datetime | None = Field(
        None,
        description="sent_at of the latest update seen when checking; a mismatch aborts the send",
    )


class SendUpdateResponse(BaseModel):
    email_record_id: str
    message_id: str | None = None
    recipient: str
    subject: str
    sent_at: datetime
    first_update: bool
    summary: ChangesSummary


class EmailHistoryItem(BaseModel):
    """A sent update email joined with its recipient and project."""

    id: str
    sent_at: datetime
    email_subject: str
    personal_message: str
    email_sent_successfully: bool
    sent_by: str | None = None
    user_id: str
    recipient_name: str | None = None
    recipient_email: str | None = None
    project_id: str | None = None
    project_name: str | None = None
    last_email_status: str | None = None
    changes_snapshot: dict[str, Any] = Field(default_factory=dict)
