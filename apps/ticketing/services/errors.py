"""Domain errors raised by the ticketing services."""

from __future__ import annotations


class TicketingError(RuntimeError):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ResourceNotFoundError(TicketingError):
    """Raised when a referenced flight, user, seat, transaction or ticket is missing."""

    status_code = 404


class SeatAlreadyBookedError(TicketingError):
    """Raised when the requested seat is already attached to a ticket."""

    status_code = 409

    def __init__(self, message: str = "Seat is already booked") -> None:
        super().__init__(message)


class TicketCodeConflictError(TicketingError):
    """Raised by the repository when an insert collides on the ticket code."""

    status_code = 409


class TicketCodeGenerationError(TicketingError):
    """Raised when no unique ticket code could be produced."""

    status_code = 500


class InvalidPaginationError(TicketingError):
    """Raised when a listing is requested with a non-positive limit or page."""

    status_code = 400


class TicketDataIntegrityError(TicketingError):
    """Raised when stored reference data is incomplete, e.g. a flight without its plane."""

    status_code = 500
