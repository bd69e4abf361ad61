"""Tests for ticket classification and note tag synthesis."""

from helpdesk.db.enums import TicketPriority
from helpdesk.services.classifier import (
    build_subject,
    build_summary,
    classify,
    union_tags,
)
from helpdesk.services.tag_synthesizer import tags_from_note


def test_purpose_tags_come_first_then_message_keywords():
    result = classify("Wholesale", "We'd love to order in bulk for an event")
    assert result.tags == [
        "Wholesale inquiry",
        "Bulk order",
        "Bulk opportunity",
        "Positive sentiment",
    ]


def test_duplicate_tags_are_dropped():
    result = classify("Returns & Refunds", "I want a refund, money back please")
    assert result.tags == ["Refund request"]


def test_unknown_purpose_adds_no_purpose_tag():
    result = classify("Something Else", "Where is my order? tracking says nothing")
    assert result.tags == ["Tracking question"]


def test_priority_urgent_beats_everything():
    assert classify("Other", "Please help ASAP").priority == TicketPriority.URGENT
    assert classify("Billing", "This is URGENT").priority == TicketPriority.URGENT


def test_priority_high_for_refunds_billing_shipping():
    assert classify("Returns & Refunds", "hello").priority == TicketPriority.HIGH
    assert classify("Other", "I want to cancel").priority == TicketPriority.HIGH
    assert classify("Billing", "question").priority == TicketPriority.HIGH
    assert classify("Shipping & Delivery", "question").priority == TicketPriority.HIGH


def test_priority_defaults_to_medium():
    assert classify("Wholesale", "hello").priority == TicketPriority.MEDIUM
    assert classify(None, "hello").priority == TicketPriority.MEDIUM


def test_build_subject_truncates_long_messages():
    text = "x" * 61
    assert build_subject("Billing", text) == f"Billing: {'x' * 60}..."
    assert build_subject(None, "short") == "General: short"


def test_build_summary_mentions_name_and_purpose():
    assert (
        build_summary("Tech Support", "Jane Doe")
        == "Jane Doe submitted a tech support inquiry via the contact form."
    )


def test_union_tags_keeps_order_without_duplicates():
    assert union_tags(["A", "B"], ["B", "C"]) == ["A", "B", "C"]
    assert union_tags(None, ["A"]) == ["A"]


def test_note_tags_require_co_occurring_keywords():
    assert tags_from_note("Customer asked about a refund") == []
    assert tags_from_note("Refund already issued last month") == ["Previous refund"]


def test_note_tags_follow_rule_order():
    note = "Frustrated VIP, reshipped once, gave 20% off coupon"
    assert tags_from_note(note) == [
        "Previous reship",
        "Received discount",
        "VIP",
        "Difficult interaction",
    ]


def test_note_tags_effect_skeptic_and_subscription():
    note = "Said she didn't feel anything and wants to pause her subscription"
    assert tags_from_note(note) == ["Subscription at risk", "Effect skeptic"]


def test_note_tags_empty_note():
    assert tags_from_note("") == []
    assert tags_from_note(None) == []
