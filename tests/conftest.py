"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite database per test (schema from model metadata)
- Factory helpers for customers and tickets
- HTTPX AsyncClient with the database dependency overridden
"""
import os
from datetime import timedelta
from typing import AsyncGenerator, Generator

# Keep tests off the local database file and any real provider key
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AI_API_KEY"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session, sessionmaker

from helpdesk.core.deps import get_db
from helpdesk.db.base import Base
from helpdesk.db.enums import TicketChannel, TicketPriority, TicketStatus
from helpdesk.db.models import Customer, Ticket
from helpdesk.db.session import build_engine
from helpdesk.db.types import utcnow
from helpdesk.main import app


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine with the full schema, discarded after the test."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    """Session bound to the per-test engine; services may commit freely."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture(scope="function")
def make_customer(db: Session):
    """Create and commit a customer."""

    def _make(
        name: str = "Jane Doe",
        email: str = "jane@example.com",
        *,
        phone: str | None = None,
        tags: list[str] | None = None,
        alt_emails: list[str] | None = None,
        ticket_count: int = 1,
        **fields,
    ) -> Customer:
        customer = Customer(
            name=name,
            email=email.lower(),
            phone=phone,
            tags=tags or [],
            alt_emails=alt_emails or [],
            ticket_count=ticket_count,
            **fields,
        )
        db.add(customer)
        db.commit()
        return customer

    return _make


@pytest.fixture(scope="function")
def make_ticket(db: Session):
    """Create and commit a ticket, optionally last updated `age` ago."""
    counter = {"n": 0}

    def _make(
        customer: Customer,
        *,
        status: TicketStatus = TicketStatus.OPEN,
        age: timedelta = timedelta(0),
        tags: list[str] | None = None,
        code: str | None = None,
    ) -> Ticket:
        counter["n"] += 1
        stamp = utcnow() - age
        ticket = Ticket(
            ticket_code=code or f"TST-{counter['n']:04d}",
            customer_id=customer.id,
            subject="Test ticket",
            purpose="Other",
            status=status,
            priority=TicketPriority.MEDIUM,
            channel=TicketChannel.SITE_FORM,
            tags=tags or [],
            created_at=stamp,
            updated_at=stamp,
        )
        db.add(ticket)
        db.commit()
        return ticket

    return _make


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against the app with get_db bound to the test session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
