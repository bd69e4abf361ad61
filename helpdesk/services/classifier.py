"""Keyword heuristics for ticket tags, priority, subject and summary."""

from __future__ import annotations

from dataclasses import dataclass, field

from helpdesk.db.enums import TicketPriority

DEFAULT_PURPOSE = "Other"
SUBJECT_PREVIEW_CHARS = 60

PURPOSE_TAGS: dict[str, tuple[str, ...]] = {
    "Billing": ("Billing inquiry",),
    "Tech Support": ("Technical issue",),
    "Product Questions": ("Product inquiry",),
    "Shipping & Delivery": ("Shipping issue",),
    "Returns & Refunds": ("Refund request",),
    "Wholesale": ("Wholesale inquiry", "Bulk order"),
    "Partnership": ("Partnership inquiry",),
    "Press & Media": ("Press inquiry",),
    "Other": ("General inquiry",),
}

# (tag, any-of keywords), applied to the lower-cased message in order.
MESSAGE_TAG_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Subscription issue", ("cancel", "subscription")),
    ("Refund request", ("refund", "money back")),
    ("Tracking question", ("tracking", "where is my order")),
    ("Flavor feedback", ("flavor", "taste")),
    ("Bulk opportunity", ("bulk", "event", "wholesale")),
    ("Positive sentiment", ("love", "amazing", "obsessed")),
    ("At risk", ("disappoint", "not working", "doesn't work")),
    ("Gift buyer", ("gift",)),
    ("Dosage question", ("how long", "dosage", "how much")),
    ("New flavor interest", ("new flavor", "mango", "lemon")),
)

URGENT_KEYWORDS = ("urgent", "asap", "immediately")
HIGH_PRIORITY_KEYWORDS = ("refund", "cancel")
HIGH_PRIORITY_PURPOSES = frozenset({"Returns & Refunds", "Billing", "Shipping & Delivery"})


@dataclass(frozen=True)
class Classification:
    tags: list[str] = field(default_factory=list)
    priority: TicketPriority = TicketPriority.MEDIUM


def dedupe(values) -> list[str]:
    """Drop repeats, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def union_tags(existing: list[str] | None, incoming: list[str] | None) -> list[str]:
    return dedupe([*(existing or []), *(incoming or [])])


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def generate_tags(purpose: str | None, text: str | None) -> list[str]:
    tags: list[str] = list(PURPOSE_TAGS.get(purpose or DEFAULT_PURPOSE, ()))
    message = (text or "").lower()
    for tag, keywords in MESSAGE_TAG_RULES:
        if _contains_any(message, keywords):
            tags.append(tag)
    return dedupe(tags)


def determine_priority(purpose: str | None, text: str | None) -> TicketPriority:
    message = (text or "").lower()
    if _contains_any(message, URGENT_KEYWORDS):
        return TicketPriority.URGENT
    if purpose in HIGH_PRIORITY_PURPOSES or _contains_any(message, HIGH_PRIORITY_KEYWORDS):
        return TicketPriority.HIGH
    return TicketPriority.MEDIUM


def classify(purpose: str | None, text: str | None) -> Classification:
    """Derive the tag set and priority for an incoming message."""
    return Classification(
        tags=generate_tags(purpose, text),
        priority=determine_priority(purpose, text),
    )


def build_subject(purpose: str | None, text: str | None) -> str:
    message = text or ""
    preview = message[:SUBJECT_PREVIEW_CHARS]
    if len(message) > SUBJECT_PREVIEW_CHARS:
        preview += "..."
    return f"{purpose or 'General'}: {preview}"


def build_summary(purpose: str | None, name: str) -> str:
    return f"{name} submitted a {(purpose or DEFAULT_PURPOSE).lower()} inquiry via the contact form."
