"""Enum definitions for application constants."""

from helpdesk.db.enums.customers import MatchKind
from helpdesk.db.enums.ticketing import (
    RouteAction,
    SenderType,
    TicketChannel,
    TicketPriority,
    TicketStatus,
)

__all__ = [
    "MatchKind",
    "RouteAction",
    "SenderType",
    "TicketChannel",
    "TicketPriority",
    "TicketStatus",
]
