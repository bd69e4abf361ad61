"""Pydantic schemas for ticket inbox, detail, status, reply, notes and drafts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class TicketCustomerRead(BaseModel):
    """Customer profile as shown next to a ticket."""

    id: UUID
    name: str
    email: str
    phone: str | None = None
    orders: int = 0
    ltv: Decimal = Decimal("0")
    tags: list[str] = Field(default_factory=list)
    ticket_count: int = 0


class TicketMessageRead(BaseModel):
    """Conversation entry."""

    id: UUID
    sender_type: str
    sender_name: str
    content: str
    metadata: dict = Field(default_factory=dict)
    created_at: datetime


class TicketNoteRead(BaseModel):
    """Internal ticket note."""

    id: UUID
    author: str
    content: str
    created_at: datetime


class TicketListItem(BaseModel):
    """Inbox row for a ticket."""

    id: UUID
    ticket_code: str
    status: str
    priority: str
    channel: str
    subject: str | None = None
    purpose: str | None = None
    tags: list[str] = Field(default_factory=list)
    summary: str | None = None
    customer: TicketCustomerRead
    created_at: datetime
    updated_at: datetime


class TicketListResponse(BaseModel):
    """Ticket inbox."""

    items: list[TicketListItem]


class TicketDetailResponse(BaseModel):
    """Ticket with ordered conversation and notes."""

    ticket: TicketListItem
    messages: list[TicketMessageRead] = Field(default_factory=list)
    notes: list[TicketNoteRead] = Field(default_factory=list)


class TicketStatusUpdate(BaseModel):
    """Status change payload."""

    status: str


class TicketReplyRequest(BaseModel):
    """Agent reply payload."""

    content: str = Field(min_length=1, max_length=20000)
    sender_name: str | None = None


class TicketNoteCreateRequest(BaseModel):
    """Add note payload."""

    content: str = Field(min_length=1, max_length=20000)
    author: str | None = None


class TicketNoteCreateResponse(BaseModel):
    """Created note plus tags it added to the customer."""

    note: TicketNoteRead
    new_customer_tags: list[str] = Field(default_factory=list)


class TicketDraftRequest(BaseModel):
    """Drafting payload.

    context is the agent's guidance for this reply; knowledge_base is the
    pre-rendered policy text placed in the system prompt.
    """

    context: str = ""
    knowledge_base: str = ""


class TicketDraftResponse(BaseModel):
    """Drafted reply; generated is False when guidance was returned as-is."""

    ticket_code: str
    draft: str
    generated: bool
    error: str | None = None
