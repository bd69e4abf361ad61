"""Utility modules."""

from helpdesk.utils.normalization import (
    name_tokens,
    normalize_email,
    normalize_name,
    phone_digits,
    phone_suffix,
)

__all__ = [
    "name_tokens",
    "normalize_email",
    "normalize_name",
    "phone_digits",
    "phone_suffix",
]
