"""Inbound webhooks (storefront contact form)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_db
from helpdesk.schemas.intake import ContactFormResponse, ContactFormSubmission
from helpdesk.services import intake_service

router = APIRouter()


@router.post(
    "/contact-form",
    response_model=ContactFormResponse,
    status_code=status.HTTP_201_CREATED,
)
def contact_form(
    submission: ContactFormSubmission,
    db: Session = Depends(get_db),
) -> ContactFormResponse:
    """Create or thread a ticket from a contact form submission."""
    result = intake_service.submit_contact_form(db, submission)
    return ContactFormResponse(
        ticket_id=result.ticket.ticket_code,
        action=result.action.value,
        match_kind=result.match_kind.value,
        customer_id=result.customer.id,
        possible_duplicate_of=result.possible_match.id if result.possible_match else None,
        message=f"Ticket {result.action.value} successfully",
    )
