"""Service layer exports."""

from .entities import Ticket, TicketPage, TicketReferences, TicketRenderBundle
from .errors import (
    InvalidPaginationError,
    ResourceNotFoundError,
    SeatAlreadyBookedError,
    TicketCodeConflictError,
    TicketCodeGenerationError,
    TicketDataIntegrityError,
    TicketingError,
)
from .repository import TicketRepository
from .tickets import (
    TicketCodeGenerator,
    TicketIssuanceService,
    TicketMutationService,
    TicketQueryService,
    TicketRenderingService,
)

__all__ = [
    "InvalidPaginationError",
    "ResourceNotFoundError",
    "SeatAlreadyBookedError",
    "Ticket",
    "TicketCodeConflictError",
    "TicketCodeGenerationError",
    "TicketCodeGenerator",
    "TicketDataIntegrityError",
    "TicketIssuanceService",
    "TicketMutationService",
    "TicketPage",
    "TicketQueryService",
    "TicketReferences",
    "TicketRenderBundle",
    "TicketRenderingService",
    "TicketRepository",
    "TicketingError",
]
