"""
Pydantic schemas for milestone updates.

A milestone update is a tagged union discriminated on ``type``; each variant
only carries the fields its phase has.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import Base64Bytes, BaseModel, Field

from portal.milestones.constants import DiscoveryStatus, InvoiceStatus, ProposalStatus
from portal.store.schemas import UserRecord


class PdfDocument(BaseModel):
    """A PDF sent to the client as an email attachment."""

    filename: str = Field(..., min_length=1, description="Attachment file name")
    content: Base64Bytes = Field(..., description="Base64-encoded PDF bytes")


class DiscoveryUpdate(BaseModel):
    type: Literal["discovery"] = "discovery"
    status: DiscoveryStatus
    scheduled_at: datetime | None = Field(None, description="Discovery call date and time")


class ProposalUpdate(BaseModel):
    type: Literal["proposal"] = "proposal"
    status: ProposalStatus
    file_url: str | None = Field(None, description="Link to the proposal")
    pdf: PdfDocument | None = None


class InvoiceUpdate(BaseModel):
    type: Literal["invoice"] = "invoice"
    status: InvoiceStatus
    file_url: str | None = Field(None, description="Link to the invoice")
    amount_cents: int | None = Field(None, ge=0, description="Invoice total in cents")
    pdf: PdfDocument | None = None


MilestoneUpdate = Annotated[
    DiscoveryUpdate | ProposalUpdate | InvoiceUpdate, Field(discriminator="type")
]


class MilestoneUpdateRequest(BaseModel):
    update: MilestoneUpdate


class MilestoneUpdateResult(BaseModel):
    user: UserRecord
    email_sent: bool = Field(False, description="Whether the client was emailed")
