"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any

from helpdesk.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging() -> None:
    """Install the process-wide log format at the configured level."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def mask_email(email: str | None) -> str:
    """Keep enough of an address to correlate log lines without storing it."""
    if not email:
        return ""
    local, _, domain = email.partition("@")
    prefix = local[:3] if local else ""
    return f"{prefix}...@{domain}" if domain else f"{prefix}..."


def build_log_context(
    *,
    customer_id: Any | None = None,
    ticket_code: str | None = None,
    match_kind: str | None = None,
    action: str | None = None,
    email: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict."""
    context: dict[str, Any] = {}
    if customer_id:
        context["customer_id"] = str(customer_id)
    if ticket_code:
        context["ticket_code"] = ticket_code
    if match_kind:
        context["match_kind"] = match_kind
    if action:
        context["action"] = action
    if email:
        context["email_masked"] = mask_email(email)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    return context
