"""Ticket routing and lifecycle: threading, reopen, creation, replies and notes."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from helpdesk.core.config import settings
from helpdesk.core.errors import ConflictError, NotFoundError, ValidationError
from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.enums import (
    RouteAction,
    SenderType,
    TicketChannel,
    TicketPriority,
    TicketStatus,
)
from helpdesk.db.locks import lock_customer
from helpdesk.db.models import Customer, Ticket, TicketMessage, TicketNote
from helpdesk.db.session import unit_of_work
from helpdesk.db.types import utcnow
from helpdesk.services import merge_service
from helpdesk.services.classifier import Classification, union_tags
from helpdesk.services.tag_synthesizer import tags_from_note

logger = logging.getLogger(__name__)

AUTO_REPLY_SENDER = "Auto-reply"
SYSTEM_AUTHOR = "System"
REOPEN_NOTE = "Reopened automatically: customer wrote back within the reopen window."
TICKET_INSERT_ATTEMPTS = 3
MAX_LIST_LIMIT = 200


@dataclass(frozen=True)
class RouteResult:
    ticket: Ticket
    action: RouteAction
    customer: Customer


@dataclass(frozen=True)
class NoteResult:
    note: TicketNote
    new_customer_tags: list[str]


# =============================================================================
# Utility helpers
# =============================================================================


def _auto_reply_text(ticket_code: str) -> str:
    return (
        "Thanks for reaching out! We've received your message and a team member "
        f"will get back to you shortly. Your ticket number is {ticket_code}."
    )


def _is_ticket_code_conflict(error: IntegrityError) -> bool:
    constraint_name = getattr(getattr(error.orig, "diag", None), "constraint_name", None)
    if constraint_name == "uq_tickets_code":
        return True
    message = str(error.orig) if error.orig else str(error)
    return "uq_tickets_code" in message or "tickets.ticket_code" in message


def generate_ticket_code(db: Session) -> str:
    """
    Generate an unused display code such as TIX-4821.

    Random digits are checked against existing tickets; after
    TICKET_CODE_MAX_ATTEMPTS collisions the code widens by one digit. The
    unique constraint still backs this up against concurrent inserts.
    """
    prefix = settings.TICKET_CODE_PREFIX
    width = settings.TICKET_CODE_DIGITS
    for _ in range(3):
        low = 10 ** (width - 1)
        for _ in range(settings.TICKET_CODE_MAX_ATTEMPTS):
            code = f"{prefix}-{low + secrets.randbelow(9 * low)}"
            taken = db.execute(select(Ticket.id).where(Ticket.ticket_code == code)).first()
            if taken is None:
                return code
        width += 1
    raise ConflictError("Could not allocate a free ticket code")


def _append_message(
    db: Session,
    ticket: Ticket,
    *,
    sender_type: SenderType,
    sender_name: str,
    content: str,
    metadata: dict | None = None,
    now: datetime | None = None,
) -> TicketMessage:
    db.flush()
    last_position = db.execute(
        select(func.coalesce(func.max(TicketMessage.position), 0)).where(
            TicketMessage.ticket_id == ticket.id
        )
    ).scalar_one()
    message = TicketMessage(
        ticket_id=ticket.id,
        position=last_position + 1,
        sender_type=sender_type,
        sender_name=sender_name,
        content=content,
        metadata_json=metadata or {},
        created_at=now or utcnow(),
    )
    db.add(message)
    db.flush()
    return message


def _record_note(
    db: Session,
    ticket: Ticket,
    customer: Customer,
    *,
    author: str,
    content: str,
) -> NoteResult:
    note = TicketNote(ticket_id=ticket.id, author=author, content=content, created_at=utcnow())
    db.add(note)
    new_tags = tags_from_note(content)
    if new_tags:
        customer.tags = union_tags(customer.tags, new_tags)
        customer.updated_at = utcnow()
        logger.info(
            "Note tags added to customer: %s",
            ", ".join(new_tags),
            extra=build_log_context(customer_id=customer.id, ticket_code=ticket.ticket_code),
        )
    db.flush()
    return NoteResult(note=note, new_customer_tags=new_tags)


def _get_ticket_by_code(db: Session, ticket_code: str, *, for_update: bool = False) -> Ticket:
    stmt = select(Ticket).where(Ticket.ticket_code == ticket_code)
    if for_update:
        stmt = stmt.with_for_update()
    ticket = db.execute(stmt).scalar_one_or_none()
    if ticket is None:
        raise NotFoundError(f"Ticket {ticket_code} not found")
    return ticket


def _lock_routing_customer(db: Session, customer_id: UUID) -> Customer:
    customer = lock_customer(db, customer_id)
    if customer is not None:
        return customer
    # Merged away while we waited: continue against the survivor.
    survivor_id = merge_service.follow_redirect(db, customer_id)
    if survivor_id is not None:
        customer = lock_customer(db, survivor_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    logger.info(
        "Routing redirected from merged customer %s",
        customer_id,
        extra=build_log_context(customer_id=customer.id, action="redirect"),
    )
    return customer


def _candidate_order(tiebreak: str):
    if tiebreak == "least_recently_updated":
        return (Ticket.updated_at.asc(), Ticket.created_at.asc(), Ticket.id)
    return (Ticket.updated_at.desc(), Ticket.created_at.desc(), Ticket.id)


def _find_active_ticket(db: Session, customer_id: UUID) -> Ticket | None:
    return db.execute(
        select(Ticket)
        .where(
            Ticket.customer_id == customer_id,
            Ticket.status.in_(TicketStatus.active()),
        )
        .order_by(*_candidate_order(settings.ROUTING_TIEBREAK))
        .limit(1)
    ).scalar_one_or_none()


def _find_recent_finished_ticket(db: Session, customer_id: UUID, now: datetime) -> Ticket | None:
    latest = db.execute(
        select(Ticket)
        .where(
            Ticket.customer_id == customer_id,
            Ticket.status.in_(TicketStatus.finished()),
        )
        .order_by(Ticket.updated_at.desc(), Ticket.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()
    if latest is None:
        return None
    if latest.updated_at > now - settings.reopen_window:
        return latest
    return None


def _create_ticket(
    db: Session,
    customer: Customer,
    classification: Classification,
    *,
    subject: str | None,
    purpose: str | None,
    summary: str | None,
    channel: TicketChannel,
    now: datetime,
) -> Ticket:
    for attempt in range(TICKET_INSERT_ATTEMPTS):
        ticket = Ticket(
            ticket_code=generate_ticket_code(db),
            customer_id=customer.id,
            subject=subject,
            purpose=purpose,
            status=TicketStatus.OPEN,
            priority=classification.priority or TicketPriority.MEDIUM,
            channel=channel,
            tags=list(classification.tags),
            summary=summary,
            created_at=now,
            updated_at=now,
        )
        try:
            with db.begin_nested():
                db.add(ticket)
                db.flush()
        except IntegrityError as exc:
            if _is_ticket_code_conflict(exc) and attempt < TICKET_INSERT_ATTEMPTS - 1:
                continue
            raise
        return ticket
    raise ConflictError("Could not allocate a free ticket code")


# =============================================================================
# Routing
# =============================================================================


def route(
    db: Session,
    customer_id: UUID,
    text: str,
    classification: Classification,
    *,
    sender_name: str | None = None,
    purpose: str | None = None,
    subject: str | None = None,
    summary: str | None = None,
    channel: TicketChannel = TicketChannel.SITE_FORM,
    metadata: dict | None = None,
    commit: bool = True,
) -> RouteResult:
    """
    Attach an incoming customer message to the right ticket.

    1. An open or pending ticket is threaded onto.
    2. Otherwise a resolved or closed ticket updated within the reopen
       window is reopened, with a system note recording why.
    3. Otherwise a new ticket is created and auto-acknowledged.

    The customer row stays locked for the rest of the transaction, so
    concurrent messages from one customer and merges touching that customer
    are serialized.
    """
    if not text or not text.strip():
        raise ValidationError("Message text is required")

    with unit_of_work(db, commit=commit):
        customer = _lock_routing_customer(db, customer_id)
        now = utcnow()
        author = sender_name or customer.name

        ticket = _find_active_ticket(db, customer.id)
        action = RouteAction.THREADED
        if ticket is None:
            ticket = _find_recent_finished_ticket(db, customer.id, now)
            action = RouteAction.REOPENED

        if ticket is not None:
            _append_message(
                db,
                ticket,
                sender_type=SenderType.CUSTOMER,
                sender_name=author,
                content=text,
                metadata=metadata,
                now=now,
            )
            if action == RouteAction.REOPENED:
                _record_note(db, ticket, customer, author=SYSTEM_AUTHOR, content=REOPEN_NOTE)
            ticket.tags = union_tags(ticket.tags, classification.tags)
            ticket.status = TicketStatus.OPEN
            ticket.updated_at = now
        else:
            action = RouteAction.CREATED
            ticket = _create_ticket(
                db,
                customer,
                classification,
                subject=subject,
                purpose=purpose,
                summary=summary,
                channel=channel,
                now=now,
            )
            _append_message(
                db,
                ticket,
                sender_type=SenderType.CUSTOMER,
                sender_name=author,
                content=text,
                metadata=metadata,
                now=now,
            )
            _append_message(
                db,
                ticket,
                sender_type=SenderType.AGENT,
                sender_name=AUTO_REPLY_SENDER,
                content=_auto_reply_text(ticket.ticket_code),
                now=now,
            )
        db.flush()
        ticket_code = ticket.ticket_code

    logger.info(
        "Message routed to %s (%s)",
        ticket_code,
        action.value,
        extra=build_log_context(customer_id=customer.id, ticket_code=ticket_code, action=action.value),
    )
    return RouteResult(ticket=ticket, action=action, customer=customer)


# =============================================================================
# Lifecycle operations
# =============================================================================


def update_status(db: Session, ticket_code: str, status: str | TicketStatus, *, commit: bool = True) -> Ticket:
    """Set a ticket's status explicitly (any state to any state)."""
    try:
        new_status = TicketStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Invalid status: {status}") from exc

    with unit_of_work(db, commit=commit):
        ticket = _get_ticket_by_code(db, ticket_code, for_update=True)
        ticket.status = new_status
        ticket.updated_at = utcnow()
    return ticket


def reply(
    db: Session,
    ticket_code: str,
    content: str,
    *,
    sender_name: str | None = None,
    commit: bool = True,
) -> TicketMessage:
    """Append an agent reply; the ticket returns to open."""
    if not content or not content.strip():
        raise ValidationError("Reply content is required")

    with unit_of_work(db, commit=commit):
        ticket = _get_ticket_by_code(db, ticket_code)
        lock_customer(db, ticket.customer_id)
        now = utcnow()
        message = _append_message(
            db,
            ticket,
            sender_type=SenderType.AGENT,
            sender_name=sender_name or settings.AGENT_SIGNATURE,
            content=content,
            now=now,
        )
        ticket.status = TicketStatus.OPEN
        ticket.updated_at = now
    return message


def add_note(
    db: Session,
    ticket_code: str,
    content: str,
    *,
    author: str | None = None,
    commit: bool = True,
) -> NoteResult:
    """Record an internal note and union its derived tags into the customer."""
    if not content or not content.strip():
        raise ValidationError("Note content is required")

    with unit_of_work(db, commit=commit):
        ticket = _get_ticket_by_code(db, ticket_code)
        customer = lock_customer(db, ticket.customer_id)
        if customer is None:
            raise NotFoundError(f"Customer for ticket {ticket_code} not found")
        result = _record_note(
            db,
            ticket,
            customer,
            author=author or settings.AGENT_SIGNATURE,
            content=content,
        )
    return result


def list_tickets(
    db: Session,
    *,
    status: str | TicketStatus | None = None,
    priority: str | TicketPriority | None = None,
    limit: int = 50,
) -> list[Ticket]:
    """Inbox listing, most recently updated first. status="all" means no filter."""
    stmt = select(Ticket).options(selectinload(Ticket.customer))
    if status and status != "all":
        try:
            stmt = stmt.where(Ticket.status == TicketStatus(status))
        except ValueError as exc:
            raise ValidationError(f"Invalid status: {status}") from exc
    if priority:
        try:
            stmt = stmt.where(Ticket.priority == TicketPriority(priority))
        except ValueError as exc:
            raise ValidationError(f"Invalid priority: {priority}") from exc
    limit = max(1, min(limit, MAX_LIST_LIMIT))
    stmt = stmt.order_by(Ticket.updated_at.desc(), Ticket.created_at.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_ticket(db: Session, ticket_code: str) -> Ticket:
    """Ticket with customer, ordered messages and notes loaded."""
    ticket = db.execute(
        select(Ticket)
        .where(Ticket.ticket_code == ticket_code)
        .options(
            selectinload(Ticket.customer),
            selectinload(Ticket.messages),
            selectinload(Ticket.notes),
        )
    ).scalar_one_or_none()
    if ticket is None:
        raise NotFoundError(f"Ticket {ticket_code} not found")
    return ticket
