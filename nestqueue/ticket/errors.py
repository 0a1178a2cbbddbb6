# nestqueue/ticket/errors.py


class TicketError(Exception):
    """Base error for ticket storage issues."""


class TicketNotFoundError(TicketError):
    """Raised when no ticket matches the requested identifier."""

    def __init__(self, message: str = "ticket not found") -> None:
        super().__init__(message)


class TicketStoreError(TicketError):
    """Raised when the document store fails or returns something unusable."""


class TicketDecodeError(TicketStoreError):
    pass
