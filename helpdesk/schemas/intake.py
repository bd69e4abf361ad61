"""Pydantic schemas for the contact-form webhook."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel


class ContactFormSubmission(BaseModel):
    """Contact form payload as posted by the storefront.

    Required fields (first_name, email, message) are checked by the intake
    service so that a missing field and a blank one fail the same way.
    """

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    purpose: str | None = None
    message: str | None = None
    attachment_info: Any | None = None
    submitted_at: str | None = None


class ContactFormResponse(BaseModel):
    """Outcome of an intake."""

    success: bool = True
    ticket_id: str
    action: str
    match_kind: str
    customer_id: UUID
    possible_duplicate_of: UUID | None = None
    message: str
