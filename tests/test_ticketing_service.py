"""Tests for thread routing and ticket lifecycle operations."""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from helpdesk.core.config import settings
from helpdesk.core.errors import NotFoundError, ValidationError
from helpdesk.db.enums import RouteAction, SenderType, TicketPriority, TicketStatus
from helpdesk.db.models import Ticket, TicketNote
from helpdesk.services import merge_service, ticketing_service
from helpdesk.services.classifier import Classification


def _tickets_for(db, customer_id) -> list[Ticket]:
    return list(db.execute(select(Ticket).where(Ticket.customer_id == customer_id)).scalars())


# =============================================================================
# Routing
# =============================================================================


def test_first_message_creates_ticket_with_auto_reply(db, make_customer):
    customer = make_customer()
    classification = Classification(tags=["Billing inquiry"], priority=TicketPriority.HIGH)

    result = ticketing_service.route(
        db,
        customer.id,
        "I was charged twice",
        classification,
        purpose="Billing",
        subject="Billing: I was charged twice",
    )

    assert result.action == RouteAction.CREATED
    ticket = ticketing_service.get_ticket(db, result.ticket.ticket_code)
    assert ticket.ticket_code.startswith(f"{settings.TICKET_CODE_PREFIX}-")
    assert ticket.status == TicketStatus.OPEN
    assert ticket.priority == TicketPriority.HIGH
    assert ticket.tags == ["Billing inquiry"]
    assert [m.sender_type for m in ticket.messages] == [SenderType.CUSTOMER, SenderType.AGENT]
    assert ticket.messages[0].content == "I was charged twice"
    assert ticket.messages[1].sender_name == "Auto-reply"
    assert ticket.ticket_code in ticket.messages[1].content


def test_second_message_threads_onto_open_ticket(db, make_customer):
    customer = make_customer()

    first = ticketing_service.route(
        db, customer.id, "first", Classification(tags=["Billing inquiry"])
    )
    second = ticketing_service.route(
        db, customer.id, "second", Classification(tags=["Refund request", "Billing inquiry"])
    )

    assert second.action == RouteAction.THREADED
    assert second.ticket.id == first.ticket.id
    assert len(_tickets_for(db, customer.id)) == 1
    ticket = ticketing_service.get_ticket(db, first.ticket.ticket_code)
    assert ticket.tags == ["Billing inquiry", "Refund request"]
    assert [m.content for m in ticket.messages][-1] == "second"
    assert [m.position for m in ticket.messages] == [1, 2, 3]


def test_pending_ticket_is_threaded_and_reopened_to_open(db, make_customer, make_ticket):
    customer = make_customer()
    pending = make_ticket(customer, status=TicketStatus.PENDING)

    result = ticketing_service.route(db, customer.id, "any update?", Classification())

    assert result.action == RouteAction.THREADED
    assert result.ticket.id == pending.id
    assert result.ticket.status == TicketStatus.OPEN


def test_threading_picks_most_recently_updated_active_ticket(db, make_customer, make_ticket):
    customer = make_customer()
    make_ticket(customer, age=timedelta(hours=5))
    recent = make_ticket(customer, age=timedelta(hours=1))

    result = ticketing_service.route(db, customer.id, "hello again", Classification())

    assert result.ticket.id == recent.id


def test_threading_tiebreak_is_configurable(db, make_customer, make_ticket, monkeypatch):
    monkeypatch.setattr(settings, "ROUTING_TIEBREAK", "least_recently_updated")
    customer = make_customer()
    oldest = make_ticket(customer, age=timedelta(hours=5))
    make_ticket(customer, age=timedelta(hours=1))

    result = ticketing_service.route(db, customer.id, "hello again", Classification())

    assert result.ticket.id == oldest.id


def test_resolved_ticket_inside_window_is_reopened(db, make_customer, make_ticket):
    customer = make_customer()
    resolved = make_ticket(customer, status=TicketStatus.RESOLVED, age=timedelta(hours=23), tags=["A"])

    result = ticketing_service.route(db, customer.id, "it broke again", Classification(tags=["B"]))

    assert result.action == RouteAction.REOPENED
    assert result.ticket.id == resolved.id
    assert len(_tickets_for(db, customer.id)) == 1
    ticket = ticketing_service.get_ticket(db, resolved.ticket_code)
    assert ticket.status == TicketStatus.OPEN
    assert ticket.tags == ["A", "B"]
    assert len(ticket.notes) == 1
    assert ticket.notes[0].author == ticketing_service.SYSTEM_AUTHOR
    assert ticket.notes[0].content == ticketing_service.REOPEN_NOTE


def test_closed_ticket_outside_window_starts_new_ticket(db, make_customer, make_ticket):
    customer = make_customer()
    closed = make_ticket(customer, status=TicketStatus.CLOSED, age=timedelta(hours=25))

    result = ticketing_service.route(db, customer.id, "new question", Classification())

    assert result.action == RouteAction.CREATED
    assert result.ticket.id != closed.id
    assert len(_tickets_for(db, customer.id)) == 2
    db.refresh(closed)
    assert closed.status == TicketStatus.CLOSED


def test_reopen_window_is_configurable(db, make_customer, make_ticket, monkeypatch):
    monkeypatch.setattr(settings, "REOPEN_WINDOW_HOURS", 48.0)
    customer = make_customer()
    resolved = make_ticket(customer, status=TicketStatus.RESOLVED, age=timedelta(hours=30))

    result = ticketing_service.route(db, customer.id, "following up", Classification())

    assert result.action == RouteAction.REOPENED
    assert result.ticket.id == resolved.id


def test_route_for_unknown_customer_raises(db):
    with pytest.raises(NotFoundError):
        ticketing_service.route(db, uuid.uuid4(), "hello", Classification())


def test_route_for_merged_customer_follows_redirect(db, make_customer):
    primary = make_customer("Jane Doe", "jane@example.com")
    secondary = make_customer("Jane D", "jd@example.com")
    secondary_id = secondary.id
    merge_service.merge_customers(db, primary.id, secondary_id)

    result = ticketing_service.route(db, secondary_id, "hello", Classification())

    assert result.customer.id == primary.id
    assert result.ticket.customer_id == primary.id


def test_empty_message_is_rejected(db, make_customer):
    customer = make_customer()
    with pytest.raises(ValidationError):
        ticketing_service.route(db, customer.id, "   ", Classification())


# =============================================================================
# Ticket codes
# =============================================================================


def test_ticket_code_widens_after_repeated_collisions(db, make_customer, make_ticket, monkeypatch):
    customer = make_customer()
    make_ticket(customer, code="TIX-1000")
    monkeypatch.setattr(settings, "TICKET_CODE_MAX_ATTEMPTS", 2)
    # Always draw the lowest number for the current width
    monkeypatch.setattr(ticketing_service.secrets, "randbelow", lambda n: 0)

    assert ticketing_service.generate_ticket_code(db) == "TIX-10000"


# =============================================================================
# Lifecycle operations
# =============================================================================


def test_update_status_accepts_any_transition(db, make_customer, make_ticket):
    customer = make_customer()
    ticket = make_ticket(customer)

    for status in ("resolved", "open", "closed", "pending"):
        updated = ticketing_service.update_status(db, ticket.ticket_code, status)
        assert updated.status == TicketStatus(status)


def test_update_status_rejects_unknown_value(db, make_customer, make_ticket):
    customer = make_customer()
    ticket = make_ticket(customer)

    with pytest.raises(ValidationError):
        ticketing_service.update_status(db, ticket.ticket_code, "archived")


def test_update_status_unknown_ticket(db):
    with pytest.raises(NotFoundError):
        ticketing_service.update_status(db, "TIX-0000", "open")


def test_agent_reply_reopens_ticket(db, make_customer, make_ticket):
    customer = make_customer()
    ticket = make_ticket(customer, status=TicketStatus.PENDING)

    message = ticketing_service.reply(db, ticket.ticket_code, "We're on it")

    assert message.sender_type == SenderType.AGENT
    assert message.sender_name == settings.AGENT_SIGNATURE
    db.refresh(ticket)
    assert ticket.status == TicketStatus.OPEN


def test_reply_requires_content(db, make_customer, make_ticket):
    customer = make_customer()
    ticket = make_ticket(customer)

    with pytest.raises(ValidationError):
        ticketing_service.reply(db, ticket.ticket_code, "")


def test_add_note_unions_derived_tags_into_customer(db, make_customer, make_ticket):
    customer = make_customer(tags=["VIP"])
    ticket = make_ticket(customer)

    result = ticketing_service.add_note(
        db, ticket.ticket_code, "VIP customer, refund already processed", author="Josh"
    )

    assert result.new_customer_tags == ["Previous refund", "VIP"]
    assert result.note.author == "Josh"
    db.refresh(customer)
    assert customer.tags == ["VIP", "Previous refund"]
    notes = list(db.execute(select(TicketNote).where(TicketNote.ticket_id == ticket.id)).scalars())
    assert len(notes) == 1


def test_add_note_unknown_ticket(db):
    with pytest.raises(NotFoundError):
        ticketing_service.add_note(db, "TIX-0000", "hello")


def test_list_tickets_filters_and_orders(db, make_customer, make_ticket):
    customer = make_customer()
    older = make_ticket(customer, age=timedelta(hours=3))
    newer = make_ticket(customer, age=timedelta(hours=1))
    make_ticket(customer, status=TicketStatus.CLOSED)

    open_tickets = ticketing_service.list_tickets(db, status="open")
    everything = ticketing_service.list_tickets(db, status="all", limit=2)

    assert [t.id for t in open_tickets] == [newer.id, older.id]
    assert len(everything) == 2


def test_list_tickets_rejects_unknown_filter(db):
    with pytest.raises(ValidationError):
        ticketing_service.list_tickets(db, priority="critical")
