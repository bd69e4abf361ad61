"""Ticket inbox/detail/status/reply/notes/draft APIs."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_db
from helpdesk.db.models import Ticket, TicketMessage, TicketNote
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
from helpdesk.services import draft_service, ticketing_service

router = APIRouter()


def _ticket_item(ticket: Ticket) -> TicketListItem:
    customer = ticket.customer
    return TicketListItem(
        id=ticket.id,
        ticket_code=ticket.ticket_code,
        status=ticket.status.value,
        priority=ticket.priority.value,
        channel=ticket.channel.value,
        subject=ticket.subject,
        purpose=ticket.purpose,
        tags=ticket.tags or [],
        summary=ticket.summary,
        customer=TicketCustomerRead(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            phone=customer.phone,
            orders=customer.order_count or 0,
            ltv=customer.lifetime_value or Decimal("0"),
            tags=customer.tags or [],
            ticket_count=customer.ticket_count,
        ),
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
    )


def _message_read(message: TicketMessage) -> TicketMessageRead:
    return TicketMessageRead(
        id=message.id,
        sender_type=message.sender_type.value,
        sender_name=message.sender_name,
        content=message.content,
        metadata=message.metadata_json or {},
        created_at=message.created_at,
    )


def _note_read(note: TicketNote) -> TicketNoteRead:
    return TicketNoteRead(
        id=note.id,
        author=note.author,
        content=note.content,
        created_at=note.created_at,
    )


def _detail(ticket: Ticket) -> TicketDetailResponse:
    return TicketDetailResponse(
        ticket=_ticket_item(ticket),
        messages=[_message_read(m) for m in ticket.messages],
        notes=[_note_read(n) for n in ticket.notes],
    )


@router.get("", response_model=TicketListResponse)
def list_tickets(
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    status: str | None = None,
    priority: str | None = None,
    db: Session = Depends(get_db),
) -> TicketListResponse:
    """List tickets, most recently updated first."""
    tickets = ticketing_service.list_tickets(db, status=status, priority=priority, limit=limit)
    return TicketListResponse(items=[_ticket_item(t) for t in tickets])


@router.get("/{ticket_code}", response_model=TicketDetailResponse)
def get_ticket(ticket_code: str, db: Session = Depends(get_db)) -> TicketDetailResponse:
    """Ticket detail with conversation and internal notes."""
    return _detail(ticketing_service.get_ticket(db, ticket_code))


@router.patch("/{ticket_code}/status", response_model=TicketDetailResponse)
def update_status(
    ticket_code: str,
    data: TicketStatusUpdate,
    db: Session = Depends(get_db),
) -> TicketDetailResponse:
    ticketing_service.update_status(db, ticket_code, data.status)
    return _detail(ticketing_service.get_ticket(db, ticket_code))


@router.post("/{ticket_code}/reply", response_model=TicketMessageRead)
def reply(
    ticket_code: str,
    data: TicketReplyRequest,
    db: Session = Depends(get_db),
) -> TicketMessageRead:
    message = ticketing_service.reply(db, ticket_code, data.content, sender_name=data.sender_name)
    return _message_read(message)


@router.post("/{ticket_code}/notes", response_model=TicketNoteCreateResponse)
def add_note(
    ticket_code: str,
    data: TicketNoteCreateRequest,
    db: Session = Depends(get_db),
) -> TicketNoteCreateResponse:
    """Add an internal note; keyword rules may add tags to the customer."""
    result = ticketing_service.add_note(db, ticket_code, data.content, author=data.author)
    return TicketNoteCreateResponse(
        note=_note_read(result.note),
        new_customer_tags=result.new_customer_tags,
    )


@router.post("/{ticket_code}/draft", response_model=TicketDraftResponse)
def draft_reply(
    ticket_code: str,
    data: TicketDraftRequest,
    db: Session = Depends(get_db),
) -> TicketDraftResponse:
    """Draft a reply; falls back to the guidance text if generation is unavailable."""
    result = draft_service.draft_reply(
        db, ticket_code, guidance=data.context, knowledge_base=data.knowledge_base
    )
    return TicketDraftResponse(
        ticket_code=result.ticket_code,
        draft=result.text,
        generated=result.generated,
        error=result.error,
    )
