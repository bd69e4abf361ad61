"""ORM models; importing this package registers every table on Base.metadata."""

from helpdesk.db.models.customers import Customer, CustomerMerge
from helpdesk.db.models.ticketing import Ticket, TicketMessage, TicketNote

__all__ = [
    "Customer",
    "CustomerMerge",
    "Ticket",
    "TicketMessage",
    "TicketNote",
]
