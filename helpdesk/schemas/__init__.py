"""Pydantic schemas for API request/response models."""

from helpdesk.schemas.customer import (
    CustomerMergeRequest,
    CustomerMergeResponse,
    CustomerRead,
    PossibleDuplicateListResponse,
    PossibleDuplicateRead,
    RetiredCustomerRead,
)
from helpdesk.schemas.intake import ContactFormResponse, ContactFormSubmission
from helpdesk.schemas.ticketing import (
    TicketCustomerRead,
    TicketDetailResponse,
    TicketDraftRequest,
    TicketDraftResponse,
    TicketListItem,
    TicketListResponse,
    TicketMessageRead,
    TicketNoteCreateRequest,
    TicketNoteCreateResponse,
    TicketNoteRead,
    TicketReplyRequest,
    TicketStatusUpdate,
)

__all__ = [
    # Customers
    "CustomerMergeRequest",
    "CustomerMergeResponse",
    "CustomerRead",
    "PossibleDuplicateListResponse",
    "PossibleDuplicateRead",
    "RetiredCustomerRead",
    # Intake
    "ContactFormResponse",
    "ContactFormSubmission",
    # Tickets
    "TicketCustomerRead",
    "TicketDetailResponse",
    "TicketDraftRequest",
    "TicketDraftResponse",
    "TicketListItem",
    "TicketListResponse",
    "TicketMessageRead",
    "TicketNoteCreateRequest",
    "TicketNoteCreateResponse",
    "TicketNoteRead",
    "TicketReplyRequest",
    "TicketStatusUpdate",
]
