"""
Pydantic records exchanged with the project store.

Store implementations return these instead of ORM objects so services and
the differ work the same against Postgres and the in-memory store.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from portal.milestones.constants import DiscoveryStatus, InvoiceStatus, ProposalStatus
from portal.projects.constants import TaskStatus

# ========== Read Records ==========


class UserRecord(BaseModel):
    """A portal user (client or admin)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    phone: str | None = None
    app_name: str | None = None
    is_admin: bool = False
    approved: bool = False
    profile_completed: bool = False
    discovery_status: DiscoveryStatus = DiscoveryStatus.PENDING
    discovery_scheduled_at: datetime | None = None
    proposal_status: ProposalStatus = ProposalStatus.PENDING
    proposal_url: str | None = None
    invoice_status: InvoiceStatus = InvoiceStatus.PENDING
    invoice_url: str | None = None
    invoice_amount_cents: int | None = None
    last_email_status: str | None = None
    last_email_opened_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.email


class ProjectRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    tagline: str | None = None
    description: str
    owner_id: str
    created_by: str | None = None
    created_at: datetime


class ScreenRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    title: str
    description: str | None = None
    sort_order: int = 0
    created_by: str | None = None
    created_at: datetime


class TaskRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    screen_id: str
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    sort_order: int = 0
    created_by: str | None = None
    created_at: datetime


class TaskHistoryRecord(BaseModel):
    """A task's values as of one edit."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    task_id: str
    title: str
    description: str | None = None
    status: TaskStatus
    edited_by: str | None = None
    edited_at: datetime


class ScreenHistoryRecord(BaseModel):
    """A screen's values as of one edit."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    screen_id: str
    title: str
    description: str | None = None
    edited_by: str | None = None
    edited_at: datetime


class EmailHistoryRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    project_id: str | None = None
    sent_by: str | None = None
    email_subject: str
    personal_message: str
    changes_snapshot: dict[str, Any] = Field(default_factory=dict)
    email_sent_successfully: bool = True
    sent_at: datetime


# ========== Write Payloads ==========


class UserCreate(BaseModel):
    email: str
    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_admin: bool = False
    approved: bool = False


class TaskCreate(BaseModel):
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.NOT_STARTED


class EmailHistoryCreate(BaseModel):
    user_id: str
    project_id: str | None
    sent_by: str | None
    email_subject: str
    personal_message: str
    changes_snapshot: dict[str, Any]
    email_sent_successfully: bool = True
