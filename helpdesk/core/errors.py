"""Error taxonomy shared by the resolution, routing and merge services."""


class HelpdeskError(Exception):
    """Base exception for helpdesk service errors."""

    pass


class ValidationError(HelpdeskError):
    """Required contact or request fields are missing or invalid."""

    pass


class NotFoundError(HelpdeskError):
    """Unknown ticket or customer id."""

    pass


class ConflictError(HelpdeskError):
    """Unique constraint violated and the conflicting row could not be reloaded."""

    pass


class DependencyError(HelpdeskError):
    """Store or text-generation service unavailable, timed out, or failed."""

    pass
