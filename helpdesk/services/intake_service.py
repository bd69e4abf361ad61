"""Contact-form intake: validate, classify, resolve the customer, route the message."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from helpdesk.core.errors import ValidationError
from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.enums import MatchKind, RouteAction, TicketChannel
from helpdesk.db.models import Customer, Ticket
from helpdesk.db.session import unit_of_work
from helpdesk.db.types import utcnow
from helpdesk.schemas.intake import ContactFormSubmission
from helpdesk.services import identity_service, ticketing_service
from helpdesk.services.classifier import (
    DEFAULT_PURPOSE,
    build_subject,
    build_summary,
    classify,
)

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class IntakeResult:
    ticket: Ticket
    action: RouteAction
    customer: Customer
    match_kind: MatchKind
    possible_match: Customer | None = None


def _clean(value: str | None) -> str:
    return (value or "").strip()


def submit_contact_form(db: Session, submission: ContactFormSubmission) -> IntakeResult:
    """
    Turn one contact-form submission into a routed ticket message.

    Required fields are checked before anything is written. Resolution and
    routing share one transaction: either the customer update and the ticket
    message are both stored or neither is.
    """
    first_name = _clean(submission.first_name)
    email = _clean(submission.email)
    message = submission.message or ""

    missing = [
        field
        for field, value in (("first_name", first_name), ("email", email), ("message", message.strip()))
        if not value
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid email address: {email}") from exc

    full_name = f"{first_name} {_clean(submission.last_name)}".strip()
    raw_purpose = _clean(submission.purpose) or None
    purpose = raw_purpose or DEFAULT_PURPOSE
    phone = _clean(submission.phone) or None
    classification = classify(purpose, message)

    with unit_of_work(db):
        resolution = identity_service.resolve(
            db,
            email=email,
            phone=phone,
            full_name=full_name,
            commit=False,
        )
        routed = ticketing_service.route(
            db,
            resolution.customer.id,
            message,
            classification,
            sender_name=full_name,
            purpose=purpose,
            subject=build_subject(raw_purpose, message),
            summary=build_summary(purpose, full_name),
            channel=TicketChannel.SITE_FORM,
            metadata={
                "purpose": raw_purpose,
                "phone": phone,
                "attachment": submission.attachment_info,
                "submitted_at": submission.submitted_at or utcnow().isoformat(),
            },
            commit=False,
        )

    logger.info(
        "Contact form processed: %s %s",
        routed.ticket.ticket_code,
        routed.action.value,
        extra=build_log_context(
            customer_id=routed.customer.id,
            ticket_code=routed.ticket.ticket_code,
            match_kind=resolution.match_kind.value,
            action=routed.action.value,
            email=email,
            route="contact_form",
        ),
    )
    return IntakeResult(
        ticket=routed.ticket,
        action=routed.action,
        customer=routed.customer,
        match_kind=resolution.match_kind,
        possible_match=resolution.possible_match,
    )
