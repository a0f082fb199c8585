from __future__ import annotations

import logging
import uuid
from typing import Callable

from opentelemetry import trace

from .entities import Flight, FlightSeat, Ticket, TicketPage, TicketReferences, TicketRenderBundle
from .errors import (
    InvalidPaginationError,
    ResourceNotFoundError,
    SeatAlreadyBookedError,
    TicketCodeConflictError,
    TicketCodeGenerationError,
    TicketDataIntegrityError,
)
from .repository import RENDER_RELATIONS, TicketRepository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_CODE_ATTEMPTS = 10


class TicketCodeGenerator:
    """Build human readable ticket codes.

    The base code is ``{airline}-{departure airport}-{flight}-{seat}``. When it
    is taken, a random UUID is appended to the base (never to a previous
    suffixed candidate).
    """

    def __init__(self, suffix_factory: Callable[[], str] | None = None) -> None:
        self._suffix_factory = suffix_factory or (lambda: str(uuid.uuid4()))

    @staticmethod
    def base_code(flight: Flight, seat: FlightSeat) -> str:
        if flight.plane is None:
            raise TicketDataIntegrityError(f"Flight {flight.id} has no plane")
        if flight.departure_airport is None:
            raise TicketDataIntegrityError(f"Flight {flight.id} has no departure airport")
        return f"{flight.plane.code}-{flight.departure_airport.code}-{flight.code}-{seat.seat_number}"

    def with_suffix(self, base: str) -> str:
        return f"{base}-{self._suffix_factory()}"


class TicketIssuanceService:
    """Validate references and issue a ticket with a unique code."""

    def __init__(
        self,
        repository: TicketRepository,
        *,
        code_generator: TicketCodeGenerator | None = None,
        max_code_attempts: int = DEFAULT_MAX_CODE_ATTEMPTS,
    ) -> None:
        self._repository = repository
        self._code_generator = code_generator or TicketCodeGenerator()
        self._max_code_attempts = max(1, max_code_attempts)

    async def issue_ticket(self, references: TicketReferences) -> Ticket:
        with tracer.start_as_current_span("tickets.issue") as span:
            span.set_attribute("ticket.flight_id", references.flight_id)
            span.set_attribute("ticket.seat_id", references.seat_id)

            flight = await self._repository.get_flight(references.flight_id)
            if flight is None:
                raise ResourceNotFoundError("Flight not found")

            user = await self._repository.get_user(references.user_id)
            if user is None:
                raise ResourceNotFoundError("User not found")

            seat = await self._repository.get_seat(references.seat_id)
            if seat is None:
                raise ResourceNotFoundError("Seat not found")
            if seat.is_booked:
                raise SeatAlreadyBookedError()

            if not await self._repository.transaction_exists(references.transaction_id):
                raise ResourceNotFoundError("Ticket transaction not found")
            if not await self._repository.transaction_detail_exists(references.detail_transaction_id):
                raise ResourceNotFoundError("Ticket transaction detail not found")

            base = self._code_generator.base_code(flight, seat)
            code = base
            for attempt in range(1, self._max_code_attempts + 1):
                if await self._repository.code_exists(code):
                    logger.info("Ticket code %s is taken, retrying with a suffix", code)
                    code = self._code_generator.with_suffix(base)
                    continue
                try:
                    ticket = await self._repository.issue_ticket(code=code, references=references)
                except TicketCodeConflictError:
                    code = self._code_generator.with_suffix(base)
                    continue
                span.set_attribute("ticket.code", ticket.code)
                span.set_attribute("ticket.code_attempts", attempt)
                logger.info("Issued ticket %s (%s) for user %s", ticket.id, ticket.code, references.user_id)
                return ticket

            raise TicketCodeGenerationError(
                f"Could not generate a unique ticket code after {self._max_code_attempts} attempts"
            )


class TicketQueryService:
    """Paginated search and per-transaction lookup."""

    def __init__(self, repository: TicketRepository, *, default_page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._repository = repository
        self._default_page_size = default_page_size

    async def list_tickets(
        self,
        *,
        search: str | None = None,
        code: str | None = None,
        limit: int | None = None,
        page: int | None = None,
    ) -> TicketPage:
        limit = limit or self._default_page_size
        page = page or 1
        if limit < 1 or page < 1:
            raise InvalidPaginationError("limit and page must be positive")
        search = search or ""
        code = code or ""

        with tracer.start_as_current_span("tickets.list") as span:
            items = await self._repository.list_tickets(
                search=search,
                code=code,
                limit=limit,
                offset=(page - 1) * limit,
            )
            total = await self._repository.count_tickets(search=search, code=code)
            span.set_attribute("tickets.total", total)
        return TicketPage(items=items, total_items=total, page=page, limit=limit)

    async def get_tickets_by_transaction(self, transaction_id: str) -> list[Ticket]:
        with tracer.start_as_current_span("tickets.by_transaction"):
            tickets = await self._repository.list_tickets_by_transaction(transaction_id)
        if not tickets:
            raise ResourceNotFoundError("Ticket not found")
        return tickets


class TicketMutationService:
    """Update and delete tickets scoped to their transaction.

    Both operations take the transaction id from the route and the ticket id;
    the ticket must belong to that transaction or nothing is written.
    """

    def __init__(self, repository: TicketRepository) -> None:
        self._repository = repository

    async def update_ticket(
        self,
        ticket_id: str,
        *,
        transaction_id: str,
        references: TicketReferences,
    ) -> Ticket:
        with tracer.start_as_current_span("tickets.update"):
            await self._require_ticket(ticket_id, transaction_id)
            updated = await self._repository.update_ticket_references(ticket_id, references)
        if updated is None:
            raise ResourceNotFoundError("Ticket not found")
        logger.info("Updated ticket %s", ticket_id)
        return updated

    async def delete_ticket(self, ticket_id: str, *, transaction_id: str) -> None:
        with tracer.start_as_current_span("tickets.delete"):
            await self._require_ticket(ticket_id, transaction_id)
            deleted = await self._repository.delete_ticket(ticket_id)
        if not deleted:
            raise ResourceNotFoundError("Ticket not found")
        logger.info("Deleted ticket %s", ticket_id)

    async def _require_ticket(self, ticket_id: str, transaction_id: str) -> Ticket:
        ticket = await self._repository.find_ticket_in_transaction(ticket_id, transaction_id)
        if ticket is None:
            raise ResourceNotFoundError("Ticket not found")
        return ticket


class TicketRenderingService:
    """Collect a user's tickets and the seats bought in the same transaction."""

    def __init__(self, repository: TicketRepository) -> None:
        self._repository = repository

    async def collect(self, *, user_id: str, transaction_id: str) -> TicketRenderBundle:
        with tracer.start_as_current_span("tickets.render"):
            tickets = await self._repository.list_tickets_by_transaction(
                transaction_id,
                user_id=user_id,
                relations=RENDER_RELATIONS,
            )
            seat_ids: list[str] = []
            for ticket in tickets:
                if ticket.ticket_transaction is None:
                    continue
                for detail in ticket.ticket_transaction.details:
                    if detail.seat_id not in seat_ids:
                        seat_ids.append(detail.seat_id)
            seats = await self._repository.get_seats(seat_ids)
        return TicketRenderBundle(tickets=tickets, seats=seats)
