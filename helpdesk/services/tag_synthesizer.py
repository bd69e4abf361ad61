"""Derive customer tags from internal note text."""

from __future__ import annotations

from helpdesk.services.classifier import dedupe


def _has_any(text: str, *keywords: str) -> bool:
    return any(keyword in text for keyword in keywords)


def tags_from_note(text: str | None) -> list[str]:
    """
    Apply keyword rules to a note and return the derived tags.

    Matching is case-insensitive substring search; some rules require two
    keyword groups to co-occur (e.g. "refund" together with "issued").
    Tags are returned de-duplicated in rule order.
    """
    note = (text or "").lower()
    tags: list[str] = []

    if "refund" in note and _has_any(note, "gave", "processed", "issued", "already"):
        tags.append("Previous refund")
    if _has_any(note, "reshipped", "reship", "sent replacement"):
        tags.append("Previous reship")
    if _has_any(note, "discount", "coupon", "% off"):
        tags.append("Received discount")
    if "dosage" in note and _has_any(note, "educated", "explained", "guidance"):
        tags.append("Dosage education given")
    if _has_any(note, "vip", "high value", "important"):
        tags.append("VIP")
    if "escalat" in note:
        tags.append("Previously escalated")
    if "repeat" in note and _has_any(note, "issue", "complaint", "problem"):
        tags.append("Repeat complaint")
    if _has_any(note, "influencer", "social media", "instagram", "tiktok"):
        tags.append("Influencer")
    if _has_any(note, "wholesale", "bulk", "distributor"):
        tags.append("Wholesale lead")
    if "subscription" in note and _has_any(note, "cancel", "pause"):
        tags.append("Subscription at risk")
    if _has_any(note, "happy", "satisfied", "resolved"):
        tags.append("Resolved positive")
    if _has_any(note, "angry", "upset", "frustrated"):
        tags.append("Difficult interaction")
    if _has_any(note, "didn't feel", "no effect", "not working"):
        tags.append("Effect skeptic")

    return dedupe(tags)
