"""Customer duplicate review and merge APIs."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.core.deps import get_db
from helpdesk.schemas.customer import (
    CustomerMergeRequest,
    CustomerMergeResponse,
    CustomerRead,
    PossibleDuplicateListResponse,
    PossibleDuplicateRead,
    RetiredCustomerRead,
)
from helpdesk.services import merge_service

router = APIRouter()


@router.get("/possible-duplicates", response_model=PossibleDuplicateListResponse)
def list_possible_duplicates(db: Session = Depends(get_db)) -> PossibleDuplicateListResponse:
    """Customers flagged by fuzzy name matching, awaiting review."""
    pairs = merge_service.list_possible_duplicates(db)
    return PossibleDuplicateListResponse(
        items=[
            PossibleDuplicateRead(
                customer=CustomerRead.model_validate(pair.customer),
                candidate=CustomerRead.model_validate(pair.candidate),
            )
            for pair in pairs
        ]
    )


@router.post("/merge", response_model=CustomerMergeResponse)
def merge_customers(
    data: CustomerMergeRequest,
    db: Session = Depends(get_db),
) -> CustomerMergeResponse:
    """Fold the secondary customer into the primary. Irreversible."""
    result = merge_service.merge_customers(db, data.primary_id, data.secondary_id)
    return CustomerMergeResponse(
        primary=CustomerRead.model_validate(result.primary),
        secondary=RetiredCustomerRead(
            id=result.secondary.id,
            name=result.secondary.name,
            email=result.secondary.email,
        ),
        tickets_moved=result.tickets_moved,
    )


@router.delete("/{customer_id}/possible-duplicate", response_model=CustomerRead)
def dismiss_possible_duplicate(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> CustomerRead:
    """Clear a possible-duplicate flag without merging."""
    customer = merge_service.dismiss_possible_duplicate(db, customer_id)
    return CustomerRead.model_validate(customer)
