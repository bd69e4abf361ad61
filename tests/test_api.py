"""API tests for webhook, ticket and customer endpoints."""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

from helpdesk.core.config import settings
from helpdesk.db.enums import TicketStatus
from helpdesk.services import draft_service
from helpdesk.services.ai_provider import AIProvider, ChatResponse


def _form(**overrides) -> dict:
    data = {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "purpose": "Billing",
        "message": "I was charged twice for my order",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    res = await client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_contact_form_creates_then_threads(client: AsyncClient):
    res = await client.post("/webhooks/contact-form", json=_form())
    assert res.status_code == 201
    created = res.json()
    assert created["success"] is True
    assert created["action"] == "created"
    assert created["match_kind"] == "new"
    assert created["ticket_id"].startswith("TIX-")

    res = await client.post("/webhooks/contact-form", json=_form(message="Following up"))
    assert res.status_code == 201
    threaded = res.json()
    assert threaded["action"] == "threaded"
    assert threaded["match_kind"] == "email"
    assert threaded["ticket_id"] == created["ticket_id"]
    assert threaded["customer_id"] == created["customer_id"]


@pytest.mark.asyncio
async def test_contact_form_missing_fields(client: AsyncClient):
    res = await client.post("/webhooks/contact-form", json=_form(message=""))
    assert res.status_code == 422
    assert "message" in res.json()["detail"]


@pytest.mark.asyncio
async def test_contact_form_malformed_email(client: AsyncClient):
    res = await client.post("/webhooks/contact-form", json=_form(email="@@"))
    assert res.status_code == 422
    assert "Invalid email" in res.json()["detail"]

    res = await client.get("/tickets", params={"status": "all"})
    assert res.json()["items"] == []


@pytest.mark.asyncio
async def test_contact_form_flags_possible_duplicate(client: AsyncClient):
    first = (await client.post("/webhooks/contact-form", json=_form(first_name="John", last_name="Smith"))).json()
    res = await client.post(
        "/webhooks/contact-form",
        json=_form(first_name="Jon", last_name="Smith", email="jon@other.com"),
    )
    assert res.status_code == 201
    body = res.json()
    assert body["match_kind"] == "possible_duplicate"
    assert body["possible_duplicate_of"] == first["customer_id"]

    res = await client.get("/customers/possible-duplicates")
    assert res.status_code == 200
    items = res.json()["items"]
    assert len(items) == 1
    assert items[0]["customer"]["id"] == body["customer_id"]
    assert items[0]["candidate"]["id"] == first["customer_id"]

    res = await client.delete(f"/customers/{body['customer_id']}/possible-duplicate")
    assert res.status_code == 200
    assert res.json()["possible_duplicate_of"] is None
    res = await client.get("/customers/possible-duplicates")
    assert res.json()["items"] == []


@pytest.mark.asyncio
async def test_ticket_list_detail_status_reply_and_notes(client: AsyncClient):
    code = (await client.post("/webhooks/contact-form", json=_form())).json()["ticket_id"]

    res = await client.get("/tickets", params={"status": "open"})
    assert res.status_code == 200
    items = res.json()["items"]
    assert [t["ticket_code"] for t in items] == [code]
    assert items[0]["customer"]["email"] == "jane@example.com"
    assert items[0]["priority"] == "high"

    res = await client.get(f"/tickets/{code}")
    assert res.status_code == 200
    detail = res.json()
    assert [m["sender_type"] for m in detail["messages"]] == ["customer", "agent"]

    res = await client.patch(f"/tickets/{code}/status", json={"status": "resolved"})
    assert res.status_code == 200
    assert res.json()["ticket"]["status"] == TicketStatus.RESOLVED.value

    res = await client.patch(f"/tickets/{code}/status", json={"status": "archived"})
    assert res.status_code == 422

    res = await client.post(f"/tickets/{code}/reply", json={"content": "Refund issued"})
    assert res.status_code == 200
    assert res.json()["sender_name"] == "Lauren"
    detail = (await client.get(f"/tickets/{code}")).json()
    assert detail["ticket"]["status"] == "open"

    res = await client.post(
        f"/tickets/{code}/notes",
        json={"content": "Customer was upset, escalated to Josh", "author": "Sam"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["note"]["author"] == "Sam"
    assert body["new_customer_tags"] == ["Previously escalated", "Difficult interaction"]
    detail = (await client.get(f"/tickets/{code}")).json()
    assert detail["ticket"]["customer"]["tags"] == ["Previously escalated", "Difficult interaction"]


@pytest.mark.asyncio
async def test_unknown_ticket_returns_404(client: AsyncClient):
    assert (await client.get("/tickets/TIX-0000")).status_code == 404
    assert (await client.post("/tickets/TIX-0000/reply", json={"content": "hi"})).status_code == 404
    assert (await client.post("/tickets/TIX-0000/draft", json={})).status_code == 404


@pytest.mark.asyncio
async def test_draft_degrades_to_guidance_without_provider(client: AsyncClient):
    code = (await client.post("/webhooks/contact-form", json=_form())).json()["ticket_id"]

    res = await client.post(f"/tickets/{code}/draft", json={"context": "Offer a refund"})
    assert res.status_code == 200
    body = res.json()
    assert body["generated"] is False
    assert body["draft"] == "Offer a refund"


class RecordingProvider(AIProvider):
    def __init__(self):
        self.calls = []

    async def chat(self, messages, model=None, temperature=0.7, max_tokens=1024):
        self.calls.append(messages)
        return ChatResponse(content="Hi Jane, refund is on its way.", prompt_tokens=1, completion_tokens=1, model="fake")


@pytest.mark.asyncio
async def test_draft_passes_knowledge_base_to_system_prompt(client: AsyncClient, monkeypatch):
    provider = RecordingProvider()
    monkeypatch.setattr(settings, "AI_API_KEY", "test-key")
    monkeypatch.setattr(draft_service, "get_provider", lambda *args, **kwargs: provider)
    code = (await client.post("/webhooks/contact-form", json=_form())).json()["ticket_id"]

    res = await client.post(
        f"/tickets/{code}/draft",
        json={"context": "Offer a refund", "knowledge_base": "## POLICIES\nRefunds within 30 days"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["generated"] is True
    assert body["draft"] == "Hi Jane, refund is on its way."
    system, user = provider.calls[0]
    assert "Refunds within 30 days" in system.content
    assert "Offer a refund" in user.content


@pytest.mark.asyncio
async def test_merge_endpoint(client: AsyncClient):
    primary = (await client.post("/webhooks/contact-form", json=_form())).json()
    secondary = (
        await client.post(
            "/webhooks/contact-form",
            json=_form(first_name="Janet", last_name="Roe", email="janet@example.com"),
        )
    ).json()

    res = await client.post(
        "/customers/merge",
        json={"primary_id": primary["customer_id"], "secondary_id": secondary["customer_id"]},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["tickets_moved"] == 1
    assert body["primary"]["ticket_count"] == 2
    assert "janet@example.com" in body["primary"]["alt_emails"]
    assert body["secondary"]["email"] == "janet@example.com"

    res = await client.post(
        "/customers/merge",
        json={"primary_id": primary["customer_id"], "secondary_id": secondary["customer_id"]},
    )
    assert res.status_code == 404

    res = await client.post(
        "/customers/merge",
        json={"primary_id": primary["customer_id"], "secondary_id": primary["customer_id"]},
    )
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_dismiss_unknown_customer(client: AsyncClient):
    res = await client.delete(f"/customers/{uuid.uuid4()}/possible-duplicate")
    assert res.status_code == 404
