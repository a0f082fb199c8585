from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence


@dataclass(slots=True)
class AuthInfo:
    """Public subset of a user's credentials."""

    id: str
    email: str
    is_verified: bool


@dataclass(slots=True)
class User:
    id: str
    name: str
    role: str
    phone_number: str | None = None
    auth: AuthInfo | None = None


@dataclass(slots=True)
class Airport:
    id: str
    code: str
    name: str
    city: str | None = None


@dataclass(slots=True)
class Plane:
    """Aircraft record; ``code`` is the operating airline's code."""

    id: str
    code: str
    name: str


@dataclass(slots=True)
class Flight:
    id: str
    code: str
    plane_id: str
    departure_airport_id: str
    destination_airport_id: str
    transit_airport_id: str | None = None
    departure_at: datetime | None = None
    arrival_at: datetime | None = None
    plane: Plane | None = None
    departure_airport: Airport | None = None
    transit_airport: Airport | None = None
    destination_airport: Airport | None = None


@dataclass(slots=True)
class FlightSeat:
    id: str
    flight_id: str
    seat_number: str
    is_booked: bool


@dataclass(slots=True)
class TicketTransactionDetail:
    id: str
    transaction_id: str
    seat_id: str
    price: int
    seat: FlightSeat | None = None


@dataclass(slots=True)
class TicketTransaction:
    """Purchase grouping tickets, optionally with its detail rows."""

    id: str
    user_id: str
    total_price: int
    created_at: datetime
    details: Sequence[TicketTransactionDetail] = field(default_factory=list)


@dataclass(slots=True)
class Ticket:
    """Issued ticket with whichever relations the query resolved."""

    id: str
    code: str
    flight_id: str
    user_id: str
    seat_id: str
    ticket_transaction_id: str
    ticket_transaction_detail_id: str
    created_at: datetime
    updated_at: datetime
    flight: Flight | None = None
    user: User | None = None
    seat: FlightSeat | None = None
    ticket_transaction: TicketTransaction | None = None
    ticket_transaction_detail: TicketTransactionDetail | None = None


@dataclass(slots=True, frozen=True)
class TicketReferences:
    """The five records a ticket points at."""

    flight_id: str
    user_id: str
    seat_id: str
    transaction_id: str
    detail_transaction_id: str


@dataclass(slots=True)
class TicketPage:
    """One page of a ticket listing plus the pagination arithmetic."""

    items: Sequence[Ticket]
    total_items: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.limit)

    @property
    def page_items(self) -> int:
        return len(self.items)

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.page < self.total_pages else None

    @property
    def prev_page(self) -> int | None:
        return self.page - 1 if self.page > 1 else None


@dataclass(slots=True)
class TicketRenderBundle:
    """Tickets of a transaction and the seats purchased in it, ready for templating."""

    tickets: Sequence[Ticket]
    seats: Sequence[FlightSeat]
