"""Pydantic schemas for customer duplicate review and merge."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class CustomerRead(BaseModel):
    """Customer identity record."""

    model_config = {"from_attributes": True}

    id: UUID
    name: str
    email: str
    alt_emails: list[str] = Field(default_factory=list)
    phone: str | None = None
    tags: list[str] = Field(default_factory=list)
    ticket_count: int
    possible_duplicate_of: UUID | None = None
    order_count: int | None = None
    lifetime_value: Decimal | None = None
    created_at: datetime
    updated_at: datetime


class PossibleDuplicateRead(BaseModel):
    """A flagged customer and the existing record it resembles."""

    customer: CustomerRead
    candidate: CustomerRead


class PossibleDuplicateListResponse(BaseModel):
    items: list[PossibleDuplicateRead]


class CustomerMergeRequest(BaseModel):
    """Merge payload; the secondary is folded into the primary and deleted."""

    primary_id: UUID
    secondary_id: UUID


class RetiredCustomerRead(BaseModel):
    id: UUID
    name: str
    email: str


class CustomerMergeResponse(BaseModel):
    """Merge outcome."""

    primary: CustomerRead
    secondary: RetiredCustomerRead
    tickets_moved: int
