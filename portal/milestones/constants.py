"""
Milestone constants and enums.

Each admin-tracked project phase has its own small status enum.
"""

from enum import Enum


class MilestoneType(str, Enum):
    """The three tracked project phases."""

    DISCOVERY = "discovery"
    PROPOSAL = "proposal"
    INVOICE = "invoice"


class DiscoveryStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    COMPLETE = "complete"


class ProposalStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    REVIEWED = "reviewed"


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    PAID = "paid"
