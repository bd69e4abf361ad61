"""Customer identity ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk.db.base import Base
from helpdesk.db.types import utcnow


class Customer(Base):
    """Customer identity record; one per person, keyed by primary email."""

    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("email", name="uq_customers_email"),
        Index("idx_customers_possible_duplicate_of", "possible_duplicate_of"),
        Index("idx_customers_created", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Stored lower-cased; equality on this column is case-insensitive matching.
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    alt_emails: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Advisory pointer only: no foreign key, no relationship, never cascades.
    possible_duplicate_of: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    order_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lifetime_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class CustomerMerge(Base):
    """Immutable log of a merge; redirects work addressed to a retired customer."""

    __tablename__ = "customer_merges"
    __table_args__ = (
        UniqueConstraint("secondary_id", name="uq_customer_merges_secondary"),
        Index("idx_customer_merges_secondary_email", "secondary_email"),
        Index("idx_customer_merges_primary", "primary_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Plain ids: the secondary row is deleted and the primary may be merged later.
    primary_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    secondary_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    secondary_email: Mapped[str] = mapped_column(String(320), nullable=False)
    secondary_name: Mapped[str] = mapped_column(Text, nullable=False)
    tickets_moved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    merged_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
