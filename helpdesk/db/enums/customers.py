"""Customer identity enums."""

from enum import Enum


class MatchKind(str, Enum):
    """Which resolution tier produced the customer."""

    EMAIL = "email"
    PHONE = "phone"
    POSSIBLE_DUPLICATE = "possible_duplicate"
    NEW = "new"
