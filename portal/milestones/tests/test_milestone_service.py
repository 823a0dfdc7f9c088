"""Tests for MilestoneService."""

import base64
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from pydantic import TypeAdapter, ValidationError

from portal.integrations.email.exceptions import MailConnectionError
from portal.integrations.email.providers.mock import MockEmailProvider
from portal.milestones.constants import (
    DiscoveryStatus,
    InvoiceStatus,
    MilestoneType,
    ProposalStatus,
)
from portal.milestones.schemas import (
    DiscoveryUpdate,
    InvoiceUpdate,
    MilestoneUpdate,
    PdfDocument,
    ProposalUpdate,
)
from portal.milestones.service import MilestoneService, render_document_email
from portal.store.base import StoreError
from portal.store.memory import InMemoryProjectStore
from portal.store.schemas import UserCreate

PDF_BYTES = b"%PDF-1.7 proposal"


@pytest.fixture
def store():
    return InMemoryProjectStore()


@pytest.fixture
def mail():
    return MockEmailProvider()


@pytest.fixture
def service(store, mail):
    return MilestoneService(store, mail, studio_name="AppCatalyst", cc_address="admin@studio.test")


@pytest_asyncio.fixture
async def client_user(store):
    return await store.create_user(UserCreate(email="client@example.com", first_name="Sam"))


class TestMilestoneUpdateParsing:
    """Test suite for the milestone tagged union."""

    def test_discriminates_on_type(self):
        adapter = TypeAdapter(MilestoneUpdate)

        update = adapter.validate_python({"type": "invoice", "status": "sent", "amount_cents": 1})

        assert isinstance(update, InvoiceUpdate)

    def test_rejects_status_from_another_phase(self):
        with pytest.raises(ValidationError):
            TypeAdapter(MilestoneUpdate).validate_python({"type": "discovery", "status": "paid"})

    def test_pdf_content_is_base64(self):
        pdf = PdfDocument(filename="p.pdf", content=base64.b64encode(PDF_BYTES))

        assert pdf.content == PDF_BYTES


class TestMilestoneService:
    """Test suite for MilestoneService.update_milestone."""

    @pytest.mark.asyncio
    async def test_discovery_update_writes_only_discovery_columns(
        self, service, store, mail, client_user
    ):
        scheduled = datetime(2025, 8, 1, 14, 0, tzinfo=UTC)

        result = await service.update_milestone(
            client_user.id,
            DiscoveryUpdate(status=DiscoveryStatus.SCHEDULED, scheduled_at=scheduled),
        )

        assert result.email_sent is False
        assert result.user.discovery_status == DiscoveryStatus.SCHEDULED
        assert result.user.discovery_scheduled_at == scheduled
        assert result.user.proposal_status == ProposalStatus.PENDING
        assert mail.sent == []

    @pytest.mark.asyncio
    async def test_proposal_sent_emails_client_with_pdf(self, service, mail, client_user):
        update = ProposalUpdate(
            status=ProposalStatus.SENT,
            file_url="https://docs.example.com/proposal",
            pdf=PdfDocument(filename="proposal.pdf", content=base64.b64encode(PDF_BYTES)),
        )

        result = await service.update_milestone(client_user.id, update)

        assert result.email_sent is True
        assert result.user.proposal_url == "https://docs.example.com/proposal"
        (message,) = mail.sent
        assert message.to == ["client@example.com"]
        assert message.cc == ["admin@studio.test"]
        assert message.subject == "Your Project Proposal from AppCatalyst"
        assert "Hi Sam," in message.html
        assert "https://docs.example.com/proposal" in message.html
        assert message.attachments[0].filename == "proposal.pdf"
        assert message.attachments[0].content == PDF_BYTES

    @pytest.mark.asyncio
    async def test_invoice_sent_uses_stored_url(self, service, store, mail, client_user):
        await store.update_user(client_user.id, {"invoice_url": "https://pay.example.com/inv"})

        result = await service.update_milestone(
            client_user.id, InvoiceUpdate(status=InvoiceStatus.SENT, amount_cents=250000)
        )

        assert result.email_sent is True
        assert result.user.invoice_amount_cents == 250000
        assert "https://pay.example.com/inv" in mail.sent[0].html
        assert mail.sent[0].subject == "Your Project Invoice from AppCatalyst"

    @pytest.mark.asyncio
    async def test_paid_invoice_sends_nothing(self, service, mail, client_user):
        result = await service.update_milestone(
            client_user.id, InvoiceUpdate(status=InvoiceStatus.PAID)
        )

        assert result.user.invoice_status == InvoiceStatus.PAID
        assert result.email_sent is False
        assert mail.sent == []

    @pytest.mark.asyncio
    async def test_mail_failure_keeps_update(self, store, client_user):
        """Test a failed email is reported but the milestone change stays written."""
        service = MilestoneService(
            store, MockEmailProvider(fail_with=MailConnectionError()), studio_name="AppCatalyst"
        )

        result = await service.update_milestone(
            client_user.id, ProposalUpdate(status=ProposalStatus.SENT)
        )

        assert result.email_sent is False
        assert (await store.get_user(client_user.id)).proposal_status == ProposalStatus.SENT

    @pytest.mark.asyncio
    async def test_unknown_user(self, service):
        with pytest.raises(StoreError) as exc_info:
            await service.update_milestone("missing", DiscoveryUpdate(status=DiscoveryStatus.COMPLETE))

        assert exc_info.value.error_code == "NOT_FOUND"


class TestRenderDocumentEmail:
    def test_attachment_only(self):
        subject, html = render_document_email(
            MilestoneType.INVOICE, None, "AppCatalyst", None, has_attachment=True
        )

        assert subject == "Your Project Invoice from AppCatalyst"
        assert "Hello," in html
        assert "Invoice attached to this email" in html

    def test_escapes_name(self):
        _, html = render_document_email(
            MilestoneType.PROPOSAL, "<Sam>", "AppCatalyst", None, has_attachment=False
        )

        assert "Hi &lt;Sam&gt;," in html
