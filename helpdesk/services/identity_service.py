"""Identity resolution: find or create the customer behind a contact."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from helpdesk.core.errors import ConflictError, ValidationError
from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.enums import MatchKind
from helpdesk.db.locks import lock_customer
from helpdesk.db.models import Customer
from helpdesk.db.session import unit_of_work
from helpdesk.db.types import utcnow
from helpdesk.services import merge_service
from helpdesk.utils.normalization import (
    name_tokens,
    normalize_email,
    normalize_name,
    phone_suffix,
)

logger = logging.getLogger(__name__)

# Score must be strictly greater to flag a possible duplicate.
NAME_MATCH_THRESHOLD = 0.7
EXACT_TOKEN_AWARD = 1.0
TYPO_TOKEN_AWARD = 0.8


@dataclass(frozen=True)
class ResolutionResult:
    customer: Customer
    match_kind: MatchKind
    possible_match: Customer | None = None


# =============================================================================
# Name similarity
# =============================================================================


def _token_award(a: str, b: str) -> float:
    if a == b and len(a) > 1:
        return EXACT_TOKEN_AWARD
    if abs(len(a) - len(b)) <= 1:
        mismatches = sum(1 for x, y in zip(a, b) if x != y)
        if mismatches <= 1:
            return TYPO_TOKEN_AWARD
    return 0.0


def name_similarity(a: str | None, b: str | None) -> float:
    """
    Partial-credit similarity between two names.

    Every token of one name is compared with every token of the other:
    1.0 for an exact match (tokens longer than one character), 0.8 when the
    lengths differ by at most one and the aligned characters differ in at
    most one position. The summed awards are divided by the larger token
    count. Not an edit distance; kept as-is so existing duplicate flags stay
    reproducible.
    """
    left = name_tokens(a)
    right = name_tokens(b)
    if not left or not right:
        return 0.0
    total = sum(_token_award(x, y) for x in left for y in right)
    return total / max(len(left), len(right))


# =============================================================================
# Tier lookups
# =============================================================================


def _find_by_email(db: Session, email: str) -> Customer | None:
    return db.execute(
        select(Customer)
        .where(Customer.email == email)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def _find_by_phone(db: Session, phone: str | None) -> Customer | None:
    suffix = phone_suffix(phone)
    if suffix is None:
        return None
    candidates = db.execute(
        select(Customer).where(Customer.phone.is_not(None)).order_by(Customer.created_at, Customer.id)
    ).scalars()
    for candidate in candidates:
        if phone_suffix(candidate.phone) == suffix:
            return candidate
    return None


def _find_similar_name(db: Session, full_name: str) -> Customer | None:
    if len(name_tokens(full_name)) < 2:
        return None
    best: Customer | None = None
    best_score = 0.0
    for candidate in db.execute(select(Customer).order_by(Customer.created_at, Customer.id)).scalars():
        score = name_similarity(full_name, candidate.name)
        if score > best_score:
            best, best_score = candidate, score
    if best is not None and best_score > NAME_MATCH_THRESHOLD:
        return best
    return None


def _lock_live(db: Session, customer_id) -> Customer | None:
    """Lock a matched customer, following the merge log if it was merged away meanwhile."""
    customer = lock_customer(db, customer_id)
    if customer is not None:
        return customer
    survivor_id = merge_service.follow_redirect(db, customer_id)
    if survivor_id is None:
        return None
    return lock_customer(db, survivor_id)


# =============================================================================
# Tier outcomes
# =============================================================================


def _apply_email_hit(customer: Customer, *, full_name: str | None, phone: str | None) -> None:
    if full_name and customer.name != full_name:
        customer.name = full_name
    if phone and not customer.phone:
        customer.phone = phone
    customer.ticket_count = (customer.ticket_count or 0) + 1
    customer.updated_at = utcnow()


def _apply_phone_hit(customer: Customer, *, email: str) -> None:
    alt_emails = list(customer.alt_emails or [])
    if email != customer.email and email not in alt_emails:
        alt_emails.append(email)
        customer.alt_emails = alt_emails
    customer.ticket_count = (customer.ticket_count or 0) + 1
    customer.updated_at = utcnow()


def _create_customer(
    db: Session,
    *,
    email: str,
    full_name: str,
    phone: str | None,
    possible_duplicate_of=None,
) -> Customer | None:
    """Insert a customer inside a savepoint; None if the email was taken meanwhile."""
    customer = Customer(
        name=full_name,
        email=email,
        phone=phone,
        alt_emails=[],
        tags=[],
        ticket_count=1,
        possible_duplicate_of=possible_duplicate_of,
    )
    try:
        with db.begin_nested():
            db.add(customer)
            db.flush()
    except IntegrityError:
        logger.info(
            "Customer insert lost a race; re-resolving by email",
            extra=build_log_context(email=email, action="create_conflict"),
        )
        return None
    return customer


def _resolve_email(db: Session, email: str, *, full_name: str | None, phone: str | None) -> Customer | None:
    customer = _find_by_email(db, email)
    if customer is not None:
        _apply_email_hit(customer, full_name=full_name, phone=phone)
        return customer

    survivor_id = merge_service.find_retired_email_survivor(db, email)
    if survivor_id is None:
        return None
    survivor = lock_customer(db, survivor_id)
    if survivor is None:
        return None
    # The survivor keeps its own display name; the retired address is an alias.
    _apply_email_hit(survivor, full_name=None, phone=phone)
    return survivor


# =============================================================================
# Public API
# =============================================================================


def resolve(
    db: Session,
    *,
    email: str | None,
    phone: str | None,
    full_name: str | None,
    commit: bool = True,
) -> ResolutionResult:
    """
    Find or create the customer behind a contact.

    Tiers are tried in order and the first hit wins:
    exact email, phone suffix, then fuzzy name. A fuzzy-name hit never
    reuses the existing record; it creates a new customer flagged as a
    possible duplicate of the candidate.
    """
    normalized_email = normalize_email(email)
    if normalized_email is None:
        raise ValidationError("Email is required")
    normalized_name = normalize_name(full_name)
    if normalized_name is None:
        raise ValidationError("Name is required")
    phone = (phone or "").strip() or None

    with unit_of_work(db, commit=commit):
        result = _resolve_locked(
            db,
            email=normalized_email,
            phone=phone,
            full_name=normalized_name,
        )

    logger.info(
        "Customer resolved (%s)",
        result.match_kind.value,
        extra=build_log_context(
            customer_id=result.customer.id,
            match_kind=result.match_kind.value,
            email=normalized_email,
        ),
    )
    return result


def _resolve_locked(db: Session, *, email: str, phone: str | None, full_name: str) -> ResolutionResult:
    customer = _resolve_email(db, email, full_name=full_name, phone=phone)
    if customer is not None:
        return ResolutionResult(customer=customer, match_kind=MatchKind.EMAIL)

    by_phone = _find_by_phone(db, phone)
    if by_phone is not None:
        by_phone = _lock_live(db, by_phone.id)
    if by_phone is not None:
        _apply_phone_hit(by_phone, email=email)
        return ResolutionResult(customer=by_phone, match_kind=MatchKind.PHONE)

    candidate = _find_similar_name(db, full_name)
    if candidate is not None:
        # Held until commit so a concurrent merge sees the new pointer and clears it
        candidate = _lock_live(db, candidate.id)
    created = _create_customer(
        db,
        email=email,
        full_name=full_name,
        phone=phone,
        possible_duplicate_of=candidate.id if candidate is not None else None,
    )
    if created is None:
        customer = _resolve_email(db, email, full_name=full_name, phone=phone)
        if customer is None:
            raise ConflictError(f"Customer email conflict could not be resolved for {email}")
        return ResolutionResult(customer=customer, match_kind=MatchKind.EMAIL)

    if candidate is not None:
        return ResolutionResult(
            customer=created,
            match_kind=MatchKind.POSSIBLE_DUPLICATE,
            possible_match=candidate,
        )
    return ResolutionResult(customer=created, match_kind=MatchKind.NEW)
