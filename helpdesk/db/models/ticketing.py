"""Ticket, message and note ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk.db.base import Base
from helpdesk.db.enums import SenderType, TicketChannel, TicketPriority, TicketStatus
from helpdesk.db.models.customers import Customer
from helpdesk.db.types import utcnow


def _enum_type(enum_cls, *, name: str) -> Enum:
    """Persist str-enums by value as a checked VARCHAR (portable across backends)."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class Ticket(Base):
    """A customer conversation."""

    __tablename__ = "tickets"
    __table_args__ = (
        UniqueConstraint("ticket_code", name="uq_tickets_code"),
        Index("idx_tickets_customer_status_updated", "customer_id", "status", "updated_at"),
        Index("idx_tickets_status_updated", "status", "updated_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_code: Mapped[str] = mapped_column(String(32), nullable=False)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False
    )
    subject: Mapped[str | None] = mapped_column(Text, nullable=True)
    purpose: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[TicketStatus] = mapped_column(
        _enum_type(TicketStatus, name="ticket_status"),
        nullable=False,
        default=TicketStatus.OPEN,
    )
    priority: Mapped[TicketPriority] = mapped_column(
        _enum_type(TicketPriority, name="ticket_priority"),
        nullable=False,
        default=TicketPriority.MEDIUM,
    )
    channel: Mapped[TicketChannel] = mapped_column(
        _enum_type(TicketChannel, name="ticket_channel"),
        nullable=False,
        default=TicketChannel.SITE_FORM,
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    customer: Mapped["Customer"] = relationship()
    messages: Mapped[list["TicketMessage"]] = relationship(
        back_populates="ticket",
        order_by="(TicketMessage.created_at, TicketMessage.position)",
    )
    notes: Mapped[list["TicketNote"]] = relationship(
        back_populates="ticket",
        order_by="(TicketNote.created_at, TicketNote.id)",
    )


class TicketMessage(Base):
    """Append-only conversation entry."""

    __tablename__ = "ticket_messages"
    __table_args__ = (
        UniqueConstraint("ticket_id", "position", name="uq_ticket_messages_position"),
        Index("idx_ticket_messages_ticket_created", "ticket_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    # Insertion order within the ticket; breaks created_at ties.
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    sender_type: Mapped[SenderType] = mapped_column(
        _enum_type(SenderType, name="message_sender_type"), nullable=False
    )
    sender_name: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_json: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    ticket: Mapped["Ticket"] = relationship(back_populates="messages")


class TicketNote(Base):
    """Internal ticket notes."""

    __tablename__ = "ticket_notes"
    __table_args__ = (
        Index("idx_ticket_notes_ticket_created", "ticket_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    author: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    ticket: Mapped["Ticket"] = relationship(back_populates="notes")
