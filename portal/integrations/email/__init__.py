"""Outgoing email: provider interface, Resend and mock providers, delivery webhook."""

from portal.integrations.email.base import EmailProvider
from portal.integrations.email.exceptions import MailError
from portal.integrations.email.schemas import EmailAttachment, EmailSendResult, OutgoingEmail

__all__ = ["EmailAttachment", "EmailProvider", "EmailSendResult", "MailError", "OutgoingEmail"]
