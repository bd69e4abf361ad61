"""Ticketing enums."""

from enum import Enum


class TicketStatus(str, Enum):
    """Ticket lifecycle status."""

    OPEN = "open"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"

    @classmethod
    def active(cls) -> list["TicketStatus"]:
        """Statuses a new customer message threads onto."""
        return [cls.OPEN, cls.PENDING]

    @classmethod
    def finished(cls) -> list["TicketStatus"]:
        """Statuses eligible for reopening inside the reopen window."""
        return [cls.RESOLVED, cls.CLOSED]


class TicketPriority(str, Enum):
    """Ticket priority level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketChannel(str, Enum):
    """Channel a ticket originated from."""

    SITE_FORM = "site_form"
    EMAIL = "email"
    API = "api"


class SenderType(str, Enum):
    """Author of a ticket message."""

    CUSTOMER = "customer"
    AGENT = "agent"
    SYSTEM = "system"


class RouteAction(str, Enum):
    """Outcome of routing an incoming message."""

    THREADED = "threaded"
    REOPENED = "reopened"
    CREATED = "created"
