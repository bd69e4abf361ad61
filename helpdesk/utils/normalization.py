"""Normalization utilities for matching contact details."""

import re
import unicodedata
from typing import Optional

PHONE_SUFFIX_LENGTH = 10

_NON_DIGITS = re.compile(r"\D")
# \w minus digits and underscore: letters of any script
_NON_LETTERS = re.compile(r"[^\w\s]|[\d_]")


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email or not email.strip():
        return None
    return email.strip().lower()


def normalize_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize name by stripping whitespace and collapsing multiple spaces.

    Args:
        name: Raw name input

    Returns:
        Cleaned name or None if empty
    """
    if not name:
        return None
    cleaned = " ".join(name.split())
    return cleaned or None


def phone_digits(phone: Optional[str]) -> str:
    """Strip everything but digits ("" when empty)."""
    if not phone:
        return ""
    return _NON_DIGITS.sub("", phone)


def phone_suffix(phone: Optional[str]) -> Optional[str]:
    """
    Return the last 10 digits of a phone number for suffix matching.

    Country codes and punctuation are ignored, so "+1 (555) 123-4567" and
    "555.123.4567" share a suffix. Numbers with fewer than 10 digits have no
    suffix and never match.
    """
    digits = phone_digits(phone)
    if len(digits) < PHONE_SUFFIX_LENGTH:
        return None
    return digits[-PHONE_SUFFIX_LENGTH:]


def _strip_accents(value: str) -> str:
    """Remove diacritics so accented and plain spellings compare equal."""
    return "".join(
        ch for ch in unicodedata.normalize("NFKD", value) if not unicodedata.combining(ch)
    )


def name_tokens(name: Optional[str]) -> list[str]:
    """
    Tokenize a name for fuzzy comparison.

    - Lowercase, diacritics removed
    - Drop anything that is not a letter (any script) or whitespace
    - Collapse whitespace
    """
    if not name:
        return []
    return _NON_LETTERS.sub("", _strip_accents(name).lower()).split()
