class TicketServiceError(RuntimeError):
    """Base error for ticket and comment rule violations."""


class InvalidTicketArgumentError(TicketServiceError, ValueError):
    """Raised for malformed input, unknown enum values or a failed assignment guard."""


class TicketForbiddenError(TicketServiceError):
    """Raised when a user may not act on a comment."""


class TicketConflictError(TicketServiceError):
    """Raised when a ticket was saved by someone else since it was loaded."""
