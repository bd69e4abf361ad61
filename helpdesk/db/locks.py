"""Per-customer serialization points for routing and merge."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from helpdesk.db.models import Customer


def _advisory_lock(db: Session, customer_id: UUID) -> None:
    # Transaction-scoped; released on commit/rollback. SQLite serializes
    # writers on its own, so only PostgreSQL needs it.
    if db.get_bind().dialect.name != "postgresql":
        return
    db.execute(
        select(func.pg_advisory_xact_lock(func.hashtextextended(f"customer:{customer_id}", 0)))
    )


def lock_customer(db: Session, customer_id: UUID) -> Customer | None:
    """Take the per-customer lock and return the row (None if it is gone).

    Pending changes are flushed first, so reloading the locked row only
    replaces what another transaction committed while we waited.
    """
    db.flush()
    _advisory_lock(db, customer_id)
    return db.execute(
        select(Customer)
        .where(Customer.id == customer_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def lock_customers(db: Session, *customer_ids: UUID) -> dict[UUID, Customer]:
    """Lock several customers in a stable order to avoid deadlocks."""
    locked: dict[UUID, Customer] = {}
    for customer_id in sorted(set(customer_ids), key=str):
        customer = lock_customer(db, customer_id)
        if customer is not None:
            locked[customer_id] = customer
    return locked
