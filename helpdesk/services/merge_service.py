"""Customer merge, duplicate review, and merge-log redirects."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from helpdesk.core.errors import NotFoundError, ValidationError
from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.locks import lock_customer, lock_customers
from helpdesk.db.models import Customer, CustomerMerge, Ticket
from helpdesk.db.session import unit_of_work
from helpdesk.db.types import utcnow
from helpdesk.services.classifier import dedupe, union_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetiredCustomer:
    """What remains of a merged-away customer after its row is deleted."""

    id: UUID
    name: str
    email: str


@dataclass(frozen=True)
class MergeResult:
    primary: Customer
    secondary: RetiredCustomer
    tickets_moved: int


@dataclass(frozen=True)
class DuplicatePair:
    customer: Customer
    candidate: Customer


# =============================================================================
# Merge-log redirects
# =============================================================================


def follow_redirect(db: Session, customer_id: UUID) -> UUID | None:
    """
    Return the id that absorbed `customer_id`, following chained merges.

    Returns None when the id was never merged away.
    """
    seen: set[UUID] = {customer_id}
    current = customer_id
    while True:
        survivor = db.execute(
            select(CustomerMerge.primary_id).where(CustomerMerge.secondary_id == current)
        ).scalar_one_or_none()
        if survivor is None or survivor in seen:
            break
        seen.add(survivor)
        current = survivor
    return None if current == customer_id else current


def find_retired_email_survivor(db: Session, email: str) -> UUID | None:
    """Return the surviving customer id for a primary email retired by a merge."""
    entry = db.execute(
        select(CustomerMerge)
        .where(CustomerMerge.secondary_email == email)
        .order_by(CustomerMerge.merged_at.desc())
        .limit(1)
    ).scalar_one_or_none()
    if entry is None:
        return None
    return follow_redirect(db, entry.secondary_id)


# =============================================================================
# Merge
# =============================================================================


def _max_optional(a, b):
    values = [value for value in (a, b) if value is not None]
    return max(values) if values else None


def merge_customers(
    db: Session,
    primary_id: UUID,
    secondary_id: UUID,
    *,
    commit: bool = True,
) -> MergeResult:
    """
    Fold `secondary` into `primary` and delete the secondary record.

    Tickets are reassigned, tags and alternate emails unioned, commerce
    fields take the larger value and ticket counts are summed. Every
    possible-duplicate pointer at the secondary is cleared. All steps run in
    one transaction; nothing is applied if any step fails.
    """
    if primary_id == secondary_id:
        raise ValidationError("Cannot merge a customer into itself")

    with unit_of_work(db, commit=commit):
        locked = lock_customers(db, primary_id, secondary_id)
        primary = locked.get(primary_id)
        secondary = locked.get(secondary_id)
        if primary is None:
            raise NotFoundError(f"Customer {primary_id} not found")
        if secondary is None:
            raise NotFoundError(f"Customer {secondary_id} not found")

        db.execute(
            select(Ticket.id)
            .where(Ticket.customer_id.in_([primary.id, secondary.id]))
            .order_by(Ticket.id)
            .with_for_update()
        ).all()
        moving = (
            db.execute(select(Ticket).where(Ticket.customer_id == secondary.id))
            .scalars()
            .all()
        )
        for ticket in moving:
            ticket.customer = primary

        primary.tags = union_tags(primary.tags, secondary.tags)
        primary.alt_emails = [
            email
            for email in dedupe([*(primary.alt_emails or []), *(secondary.alt_emails or []), secondary.email])
            if email != primary.email
        ]
        primary.phone = primary.phone or secondary.phone
        primary.order_count = _max_optional(primary.order_count, secondary.order_count)
        primary.lifetime_value = _max_optional(primary.lifetime_value, secondary.lifetime_value)
        primary.ticket_count = (primary.ticket_count or 0) + (secondary.ticket_count or 0)
        primary.possible_duplicate_of = None
        primary.updated_at = utcnow()

        pointing = (
            db.execute(select(Customer).where(Customer.possible_duplicate_of == secondary.id))
            .scalars()
            .all()
        )
        for customer in pointing:
            customer.possible_duplicate_of = None

        retired = RetiredCustomer(id=secondary.id, name=secondary.name, email=secondary.email)
        db.add(
            CustomerMerge(
                primary_id=primary.id,
                secondary_id=secondary.id,
                secondary_email=secondary.email,
                secondary_name=secondary.name,
                tickets_moved=len(moving),
            )
        )
        # Tickets must point at the primary before the secondary row goes.
        db.flush()
        db.delete(secondary)
        db.flush()

    logger.info(
        "Merged customer %s into %s (%d tickets moved)",
        retired.id,
        primary.id,
        len(moving),
        extra=build_log_context(customer_id=primary.id, action="merge", email=retired.email),
    )
    return MergeResult(primary=primary, secondary=retired, tickets_moved=len(moving))


# =============================================================================
# Duplicate review
# =============================================================================


def list_possible_duplicates(db: Session) -> list[DuplicatePair]:
    """Customers flagged as possible duplicates, oldest first, with their candidate."""
    flagged = (
        db.execute(
            select(Customer)
            .where(Customer.possible_duplicate_of.is_not(None))
            .order_by(Customer.created_at, Customer.id)
        )
        .scalars()
        .all()
    )
    pairs: list[DuplicatePair] = []
    for customer in flagged:
        candidate = db.get(Customer, customer.possible_duplicate_of)
        if candidate is None:
            continue
        pairs.append(DuplicatePair(customer=customer, candidate=candidate))
    return pairs


def dismiss_possible_duplicate(
    db: Session,
    customer_id: UUID,
    *,
    commit: bool = True,
) -> Customer:
    """Clear a possible-duplicate flag without merging."""
    with unit_of_work(db, commit=commit):
        customer = lock_customer(db, customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        customer.possible_duplicate_of = None
        customer.updated_at = utcnow()
    return customer
