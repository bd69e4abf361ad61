"""Reply drafting: prompt assembly and the text-generation call."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.orm import Session

from helpdesk.core.async_utils import call_async
from helpdesk.core.config import settings
from helpdesk.core.errors import DependencyError
from helpdesk.core.structured_logging import build_log_context
from helpdesk.db.enums import SenderType
from helpdesk.db.models import Ticket
from helpdesk.services import ticketing_service
from helpdesk.services.ai_provider import AIProvider, ChatMessage, get_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DraftResult:
    ticket_code: str
    text: str
    generated: bool
    error: str | None = None


def build_system_prompt(knowledge_base: str = "") -> str:
    return f"""You are a customer support agent for {settings.BRAND_NAME}. You are drafting a reply to a customer support ticket.

# YOUR KNOWLEDGE BASE
{knowledge_base}

# RULES
- Write ONLY the reply text. No subject line, no "Dear customer", no meta-commentary.
- Follow the brand voice rules exactly.
- Sign off with just "{settings.AGENT_SIGNATURE}" on its own line.
- Never use dashes or em-dashes. Use periods or commas instead.
- If the customer has tags like "Previous refund" or "Effect skeptic", factor that into your response.
- Be helpful, warm, and solution-oriented.
- Keep it concise. 3-5 short paragraphs max.
- Lead with the answer or solution."""


def _customer_info(ticket: Ticket) -> str:
    customer = ticket.customer
    tags = ", ".join(customer.tags or [])
    return "\n".join(
        [
            f"Name: {customer.name or 'Unknown'}",
            f"Email: {customer.email or ''}",
            f"Phone: {customer.phone or 'Not provided'}",
            f"Orders: {customer.order_count or 0}",
            f"Lifetime Value: ${customer.lifetime_value or 0}",
            f"Customer Tags: {tags or 'None'}",
            f"Ticket Count: {customer.ticket_count or 1}",
        ]
    )


def build_conversation_context(ticket: Ticket, guidance: str = "") -> str:
    """Ticket details, customer profile, ordered messages, notes, then guidance."""
    messages = "\n\n".join(
        f"[{'CUSTOMER' if m.sender_type == SenderType.CUSTOMER else 'AGENT'} - {m.sender_name}]: {m.content}"
        for m in ticket.messages
    )
    notes = "\n".join(f"[NOTE by {n.author}]: {n.content}" for n in ticket.notes)

    sections = [
        "# TICKET DETAILS",
        f"Ticket ID: {ticket.ticket_code}",
        f"Subject: {ticket.subject or ''}",
        f"Purpose: {ticket.purpose or 'General'}",
        f"Priority: {ticket.priority.value}",
        f"Status: {ticket.status.value}",
        f"Tags: {', '.join(ticket.tags or [])}",
        "",
        "# CUSTOMER INFO",
        _customer_info(ticket),
        "",
        "# CONVERSATION HISTORY",
        messages,
        "",
    ]
    if notes:
        sections += ["# INTERNAL NOTES (not visible to customer)", notes, ""]
    if guidance.strip():
        sections += [
            "# AGENT GUIDANCE (follow these instructions for this specific reply)",
            guidance,
            "",
        ]
    sections.append(
        "Please draft a reply to the customer's most recent message. "
        "Follow all brand voice rules and knowledge base policies."
    )
    return "\n".join(sections)


def generate_reply(
    system_context: str,
    conversation_context: str,
    *,
    provider: AIProvider | None = None,
) -> str:
    """
    Call the text-generation service.

    Raises DependencyError when no provider is configured, the call times
    out, the transport fails or the response has no usable text.
    """
    if provider is None:
        if not settings.AI_API_KEY:
            raise DependencyError("Text generation is not configured (AI_API_KEY is empty)")
        try:
            provider = get_provider(
                settings.AI_PROVIDER,
                settings.AI_API_KEY,
                settings.AI_MODEL or None,
                timeout=settings.AI_TIMEOUT_SECONDS,
            )
        except ValueError as exc:
            raise DependencyError(str(exc)) from exc

    messages = [
        ChatMessage(role="system", content=system_context),
        ChatMessage(role="user", content=conversation_context),
    ]
    try:
        response = call_async(
            lambda: provider.chat(messages, max_tokens=settings.AI_MAX_TOKENS),
            deadline=settings.AI_TIMEOUT_SECONDS,
        )
    except TimeoutError as exc:
        raise DependencyError("Text generation timed out") from exc
    except httpx.HTTPError as exc:
        raise DependencyError(f"Text generation request failed: {exc.__class__.__name__}") from exc
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise DependencyError("Text generation returned a malformed response") from exc

    text = (response.content or "").strip()
    if not text:
        raise DependencyError("Text generation returned an empty reply")
    return text


def draft_reply(
    db: Session,
    ticket_code: str,
    *,
    guidance: str = "",
    knowledge_base: str = "",
    provider: AIProvider | None = None,
) -> DraftResult:
    """
    Draft an agent reply for a ticket.

    Unknown tickets raise NotFoundError. When text generation is unavailable
    the draft falls back to the agent's guidance text, unprocessed.
    """
    ticket = ticketing_service.get_ticket(db, ticket_code)
    system_context = build_system_prompt(knowledge_base)
    conversation_context = build_conversation_context(ticket, guidance)

    try:
        text = generate_reply(system_context, conversation_context, provider=provider)
    except DependencyError as exc:
        logger.warning(
            "Draft generation unavailable, returning guidance: %s",
            exc,
            extra=build_log_context(ticket_code=ticket_code, action="draft_fallback"),
        )
        return DraftResult(ticket_code=ticket_code, text=guidance, generated=False, error=str(exc))

    return DraftResult(ticket_code=ticket_code, text=text, generated=True)
