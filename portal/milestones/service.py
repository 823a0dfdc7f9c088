"""
Milestone service.

Records discovery, proposal and invoice progress on the client's user row.
Sending a proposal or invoice also emails the client; a failed email is
logged and reported back, but never undoes the milestone change.
"""

from html import escape
from typing import Any, assert_never

from portal.integrations.email.base import EmailProvider
from portal.integrations.email.exceptions import MailError
from portal.integrations.email.schemas import EmailAttachment, OutgoingEmail
from portal.milestones.constants import InvoiceStatus, MilestoneType, ProposalStatus
from portal.milestones.schemas import (
    DiscoveryUpdate,
    InvoiceUpdate,
    MilestoneUpdate,
    MilestoneUpdateResult,
    PdfDocument,
    ProposalUpdate,
)
from portal.store.base import ProjectStore
from portal.store.schemas import UserRecord
from portal.utils.logger import logger

_DOCUMENT_COPY = {
    MilestoneType.PROPOSAL: (
        "It was great talking with you! I wanted to share your project proposal with you.",
        "Please take your time to review it, and let me know if you have any questions. "
        "Once we're aligned on the proposal, I'll send over the invoice so we can get started.",
    ),
    MilestoneType.INVOICE: (
        "It was great reviewing the proposal with you! I'm excited to move forward with your project.",
        "Please review the invoice at your convenience. Once it's fulfilled, we'll begin work "
        "on your project.",
    ),
}


def render_document_email(
    kind: MilestoneType,
    first_name: str | None,
    studio_name: str,
    file_url: str | None,
    has_attachment: bool,
) -> tuple[str, str]:
    """Return the subject and HTML body for a proposal or invoice email."""
    label = kind.value.capitalize()
    subject = f"Your Project {label} from {studio_name}"
    opening, closing = _DOCUMENT_COPY[kind]
    greeting = f"Hi {escape(first_name)}," if first_name else "Hello,"

    if file_url:
        file_section = (
            f'<div class="document"><a href="{escape(file_url, quote=True)}">View Your {label}</a>'
        )
        if has_attachment:
            file_section += "<p>Also attached as PDF to this email</p>"
        file_section += "</div>"
    elif has_attachment:
        file_section = f'<p class="document">{label} attached to this email</p>'
    else:
        file_section = ""

    html = "\n".join(
        [
            "<!DOCTYPE html>",
            '<html><head><meta charset="utf-8"></head><body>',
            f"<h2>{escape(studio_name)}</h2>",
            f"<p>{greeting}</p>",
            f"<p>{escape(opening)}</p>",
            file_section,
            f"<p>{escape(closing)}</p>",
            f"<p>Best regards,<br>{escape(studio_name)} Team</p>",
            "</body></html>",
        ]
    )
    return subject, html


class MilestoneService:
    """Applies milestone updates and sends the related client emails."""

    def __init__(
        self,
        store: ProjectStore,
        email_provider: EmailProvider,
        studio_name: str,
        cc_address: str | None = None,
    ):
        """
        Initialize the milestone service.

        Args:
            store: Project store holding the user rows
            email_provider: Provider used for proposal and invoice emails
            studio_name: Studio name used in email copy
            cc_address: Optional address copied on proposal and invoice emails
        """
        self.store = store
        self.email_provider = email_provider
        self.studio_name = studio_name
        self.cc_address = cc_address

    async def update_milestone(
        self, user_id: str, update: MilestoneUpdate
    ) -> MilestoneUpdateResult:
        """
        Apply a milestone update to a client.

        Only the columns of the updated phase are written. A proposal or
        invoice moving to ``sent`` triggers an email to the client.

        Raises:
            StoreError: "NOT_FOUND" if the user does not exist
        """
        notify: tuple[MilestoneType, PdfDocument | None] | None = None

        fields: dict[str, Any]
        if isinstance(update, DiscoveryUpdate):
            fields = {
                "discovery_status": update.status,
                "discovery_scheduled_at": update.scheduled_at,
            }
        elif isinstance(update, ProposalUpdate):
            fields = {"proposal_status": update.status}
            if update.file_url is not None:
                fields["proposal_url"] = update.file_url
            if update.status == ProposalStatus.SENT:
                notify = (MilestoneType.PROPOSAL, update.pdf)
        elif isinstance(update, InvoiceUpdate):
            fields = {"invoice_status": update.status}
            if update.file_url is not None:
                fields["invoice_url"] = update.file_url
            if update.amount_cents is not None:
                fields["invoice_amount_cents"] = update.amount_cents
            if update.status == InvoiceStatus.SENT:
                notify = (MilestoneType.INVOICE, update.pdf)
        else:
            assert_never(update)

        user = await self.store.update_user(user_id, fields)
        logger.info(
            "Updated milestone",
            user_id=user_id,
            milestone=update.type,
            status=update.status.value,
        )

        email_sent = False
        if notify is not None:
            kind, pdf = notify
            email_sent = await self._send_document(user, kind, pdf)
        return MilestoneUpdateResult(user=user, email_sent=email_sent)

    async def _send_document(
        self,
        user: UserRecord,
        kind: MilestoneType,
        pdf: PdfDocument | None,
    ) -> bool:
        subject, html = render_document_email(
            kind,
            user.first_name,
            self.studio_name,
            user_file_url(user, kind),
            has_attachment=pdf is not None,
        )
        attachments = (
            [EmailAttachment(filename=pdf.filename, content=pdf.content)] if pdf else []
        )
        message = OutgoingEmail(
            to=[user.email],
            subject=subject,
            html=html,
            cc=[self.cc_address] if self.cc_address else [],
            attachments=attachments,
        )
        try:
            await self.email_provider.send_email(message)
        except MailError as e:
            logger.error(
                "Failed to send milestone email",
                user_id=user.id,
                milestone=kind.value,
                error_message=e.message,
            )
            return False
        logger.info("Sent milestone email", user_id=user.id, milestone=kind.value)
        return True


def user_file_url(user: UserRecord, kind: MilestoneType) -> str | None:
    """The stored document link for a proposal or invoice."""
    return user.proposal_url if kind == MilestoneType.PROPOSAL else user.invoice_url
