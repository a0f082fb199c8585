from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence, TypeVar

from sqlalchemy import func, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from packages.db.models import (
    AirportTable,
    AuthTable,
    FlightSeatTable,
    FlightTable,
    PlaneTable,
    TicketTable,
    TicketTransactionDetailTable,
    TicketTransactionTable,
    UserTable,
)

from .entities import (
    Airport,
    AuthInfo,
    Flight,
    FlightSeat,
    Plane,
    Ticket,
    TicketReferences,
    TicketTransaction,
    TicketTransactionDetail,
    User,
)
from .errors import ResourceNotFoundError, SeatAlreadyBookedError, TicketCodeConflictError

logger = logging.getLogger(__name__)

_T = TypeVar("_T", bound=SQLModel)


@dataclass(slots=True, frozen=True)
class TicketRelations:
    """Which relations to resolve when loading tickets."""

    flight: bool = False
    flight_details: bool = False
    user: bool = False
    user_auth: bool = False
    seat: bool = False
    transaction: bool = False
    transaction_details: bool = False
    detail_seats: bool = False
    transaction_detail: bool = False


LISTING_RELATIONS = TicketRelations(
    flight=True,
    flight_details=True,
    user=True,
    user_auth=True,
    transaction=True,
    transaction_details=True,
    detail_seats=True,
)
TRANSACTION_RELATIONS = TicketRelations(
    flight=True,
    user=True,
    user_auth=True,
    transaction=True,
    transaction_details=True,
    detail_seats=True,
)
ISSUED_RELATIONS = TicketRelations(
    flight=True,
    user=True,
    seat=True,
    transaction=True,
    transaction_detail=True,
)
RENDER_RELATIONS = TicketRelations(
    flight=True,
    flight_details=True,
    user=True,
    user_auth=True,
    seat=True,
    transaction=True,
    transaction_details=True,
)


class TicketRepository:
    """Persistence gateway over the airline schema.

    Relations are resolved with one ``IN`` query per related table rather than
    one lookup per row, so loading a page of tickets costs a fixed number of
    round trips.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def ping(self) -> bool:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True

    # -- reference lookups -------------------------------------------------

    async def get_flight(self, flight_id: str) -> Flight | None:
        async with self._session_factory() as session:
            flights = await self._load_flights(session, [flight_id], with_details=True)
        return flights.get(flight_id)

    async def get_user(self, user_id: str) -> User | None:
        async with self._session_factory() as session:
            users = await self._load_users(session, [user_id], with_auth=False)
        return users.get(user_id)

    async def get_seat(self, seat_id: str) -> FlightSeat | None:
        async with self._session_factory() as session:
            row = await session.get(FlightSeatTable, seat_id)
        return None if row is None else self._table_to_seat(row)

    async def get_seats(self, seat_ids: Sequence[str]) -> list[FlightSeat]:
        """Resolve seats with a single query, keeping the order of ``seat_ids``."""

        if not seat_ids:
            return []
        async with self._session_factory() as session:
            rows = await self._fetch_by_ids(session, FlightSeatTable, seat_ids)
        return [self._table_to_seat(rows[seat_id]) for seat_id in seat_ids if seat_id in rows]

    async def transaction_exists(self, transaction_id: str) -> bool:
        async with self._session_factory() as session:
            return await session.get(TicketTransactionTable, transaction_id) is not None

    async def transaction_detail_exists(self, detail_id: str) -> bool:
        async with self._session_factory() as session:
            return await session.get(TicketTransactionDetailTable, detail_id) is not None

    async def code_exists(self, code: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(TicketTable.id).where(TicketTable.code == code).limit(1))
            return result.first() is not None

    # -- tickets -----------------------------------------------------------

    async def issue_ticket(self, *, code: str, references: TicketReferences) -> Ticket:
        """Book the seat and insert the ticket in one transaction.

        The seat is claimed with a conditional update; zero affected rows means
        another ticket got there first and nothing is written.
        """

        now = datetime.now(timezone.utc)
        row = TicketTable(
            code=code,
            flight_id=references.flight_id,
            user_id=references.user_id,
            seat_id=references.seat_id,
            ticket_transaction_id=references.transaction_id,
            ticket_transaction_detail_id=references.detail_transaction_id,
            created_at=now,
            updated_at=now,
        )
        ticket_id = row.id
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    await self._claim_seat(session, references.seat_id)
                    session.add(row)
            except IntegrityError as exc:
                if await self.code_exists(code):
                    logger.info("Ticket code %s collided on insert", code)
                    raise TicketCodeConflictError(f"Ticket code {code} already exists") from exc
                raise

        ticket = await self.get_ticket(ticket_id, relations=ISSUED_RELATIONS)
        if ticket is None:
            raise RuntimeError("Failed to load issued ticket")
        return ticket

    async def get_ticket(self, ticket_id: str, *, relations: TicketRelations = TicketRelations()) -> Ticket | None:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
            if row is None:
                return None
            tickets = await self._hydrate(session, [row], relations)
        return tickets[0]

    async def list_tickets(
        self,
        *,
        search: str = "",
        code: str = "",
        limit: int,
        offset: int,
        relations: TicketRelations = LISTING_RELATIONS,
    ) -> list[Ticket]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TicketTable)
                .where(*self._code_filters(search=search, code=code))
                .order_by(TicketTable.id.asc())
                .offset(offset)
                .limit(limit)
            )
            rows = list(result.scalars().all())
            return await self._hydrate(session, rows, relations)

    async def count_tickets(self, *, search: str = "", code: str = "") -> int:
        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(TicketTable).where(*self._code_filters(search=search, code=code))
            )
        return int(total or 0)

    async def list_tickets_by_transaction(
        self,
        transaction_id: str,
        *,
        user_id: str | None = None,
        relations: TicketRelations = TRANSACTION_RELATIONS,
    ) -> list[Ticket]:
        statement = select(TicketTable).where(TicketTable.ticket_transaction_id == transaction_id)
        if user_id is not None:
            statement = statement.where(TicketTable.user_id == user_id)
        async with self._session_factory() as session:
            result = await session.execute(statement.order_by(TicketTable.id.asc()))
            rows = list(result.scalars().all())
            return await self._hydrate(session, rows, relations)

    async def find_ticket_in_transaction(self, ticket_id: str, transaction_id: str) -> Ticket | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TicketTable).where(
                    TicketTable.id == ticket_id,
                    TicketTable.ticket_transaction_id == transaction_id,
                )
            )
            row = result.scalars().first()
        return None if row is None else self._table_to_ticket(row)

    async def update_ticket_references(self, ticket_id: str, references: TicketReferences) -> Ticket | None:
        """Overwrite every reference of a ticket.

        Moving to another seat claims the new seat and releases the old one in
        the same transaction, so a seat never ends up held by two tickets.
        """

        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(TicketTable, ticket_id)
                if row is None:
                    return None
                previous_seat_id = row.seat_id
                seat_changed = references.seat_id != previous_seat_id
                if seat_changed:
                    await self._claim_seat(session, references.seat_id)
                row.flight_id = references.flight_id
                row.user_id = references.user_id
                row.seat_id = references.seat_id
                row.ticket_transaction_id = references.transaction_id
                row.ticket_transaction_detail_id = references.detail_transaction_id
                row.updated_at = datetime.now(timezone.utc)
                await session.flush()
                if seat_changed:
                    await self._release_seat_if_unheld(session, previous_seat_id)
            return self._table_to_ticket(row)

    async def delete_ticket(self, ticket_id: str) -> bool:
        """Delete one ticket, releasing its seat when nothing else holds it."""

        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(TicketTable, ticket_id)
                if row is None:
                    return False
                seat_id = row.seat_id
                await session.delete(row)
                await session.flush()
                await self._release_seat_if_unheld(session, seat_id)
        return True

    # -- seat booking --------------------------------------------------------

    @staticmethod
    async def _claim_seat(session: AsyncSession, seat_id: str) -> None:
        claimed = await session.execute(
            update(FlightSeatTable)
            .where(FlightSeatTable.id == seat_id, FlightSeatTable.is_booked.is_(False))
            .values(is_booked=True)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 1:
            return
        if await session.get(FlightSeatTable, seat_id) is None:
            raise ResourceNotFoundError("Seat not found")
        raise SeatAlreadyBookedError()

    @staticmethod
    async def _release_seat_if_unheld(session: AsyncSession, seat_id: str) -> None:
        remaining = await session.scalar(
            select(func.count()).select_from(TicketTable).where(TicketTable.seat_id == seat_id)
        )
        if remaining:
            return
        await session.execute(
            update(FlightSeatTable)
            .where(FlightSeatTable.id == seat_id)
            .values(is_booked=False)
            .execution_options(synchronize_session=False)
        )

    # -- relation loading --------------------------------------------------

    @staticmethod
    def _code_filters(*, search: str, code: str) -> list[Any]:
        return [
            TicketTable.code.contains(code, autoescape=True),
            TicketTable.code.contains(search, autoescape=True),
        ]

    @staticmethod
    async def _fetch_by_ids(session: AsyncSession, table: type[_T], ids: Iterable[str]) -> dict[str, _T]:
        unique_ids = {value for value in ids if value is not None}
        if not unique_ids:
            return {}
        result = await session.execute(select(table).where(table.id.in_(sorted(unique_ids))))
        return {row.id: row for row in result.scalars().all()}

    async def _hydrate(
        self,
        session: AsyncSession,
        rows: Sequence[TicketTable],
        relations: TicketRelations,
    ) -> list[Ticket]:
        if not rows:
            return []

        flights: dict[str, Flight] = {}
        users: dict[str, User] = {}
        seats: dict[str, FlightSeat] = {}
        transactions: dict[str, TicketTransaction] = {}
        details: dict[str, TicketTransactionDetail] = {}

        if relations.flight:
            flights = await self._load_flights(
                session, [row.flight_id for row in rows], with_details=relations.flight_details
            )
        if relations.user:
            users = await self._load_users(session, [row.user_id for row in rows], with_auth=relations.user_auth)
        if relations.seat:
            seat_rows = await self._fetch_by_ids(session, FlightSeatTable, [row.seat_id for row in rows])
            seats = {key: self._table_to_seat(value) for key, value in seat_rows.items()}
        if relations.transaction:
            transactions = await self._load_transactions(
                session,
                [row.ticket_transaction_id for row in rows],
                with_details=relations.transaction_details,
                with_seats=relations.detail_seats,
            )
        if relations.transaction_detail:
            detail_rows = await self._fetch_by_ids(
                session, TicketTransactionDetailTable, [row.ticket_transaction_detail_id for row in rows]
            )
            details = {key: self._table_to_detail(value) for key, value in detail_rows.items()}

        tickets: list[Ticket] = []
        for row in rows:
            ticket = self._table_to_ticket(row)
            ticket.flight = flights.get(row.flight_id)
            ticket.user = users.get(row.user_id)
            ticket.seat = seats.get(row.seat_id)
            ticket.ticket_transaction = transactions.get(row.ticket_transaction_id)
            ticket.ticket_transaction_detail = details.get(row.ticket_transaction_detail_id)
            tickets.append(ticket)
        return tickets

    async def _load_flights(
        self, session: AsyncSession, flight_ids: Iterable[str], *, with_details: bool
    ) -> dict[str, Flight]:
        flight_rows = await self._fetch_by_ids(session, FlightTable, flight_ids)
        planes: dict[str, PlaneTable] = {}
        airports: dict[str, AirportTable] = {}
        if with_details and flight_rows:
            planes = await self._fetch_by_ids(session, PlaneTable, [row.plane_id for row in flight_rows.values()])
            airport_ids: list[str] = []
            for row in flight_rows.values():
                airport_ids.extend(
                    value
                    for value in (row.departure_airport_id, row.transit_airport_id, row.destination_airport_id)
                    if value
                )
            airports = await self._fetch_by_ids(session, AirportTable, airport_ids)

        flights: dict[str, Flight] = {}
        for flight_id, row in flight_rows.items():
            flight = self._table_to_flight(row)
            if with_details:
                plane = planes.get(row.plane_id)
                flight.plane = None if plane is None else self._table_to_plane(plane)
                flight.departure_airport = self._airport_or_none(airports, row.departure_airport_id)
                flight.transit_airport = self._airport_or_none(airports, row.transit_airport_id)
                flight.destination_airport = self._airport_or_none(airports, row.destination_airport_id)
            flights[flight_id] = flight
        return flights

    async def _load_users(self, session: AsyncSession, user_ids: Iterable[str], *, with_auth: bool) -> dict[str, User]:
        user_rows = await self._fetch_by_ids(session, UserTable, user_ids)
        auths: dict[str, AuthInfo] = {}
        if with_auth and user_rows:
            result = await session.execute(select(AuthTable).where(AuthTable.user_id.in_(list(user_rows))))
            auths = {
                row.user_id: AuthInfo(id=row.id, email=row.email, is_verified=bool(row.is_verified))
                for row in result.scalars().all()
            }
        return {
            user_id: User(
                id=row.id,
                name=row.name,
                role=row.role,
                phone_number=row.phone_number,
                auth=auths.get(user_id),
            )
            for user_id, row in user_rows.items()
        }

    async def _load_transactions(
        self,
        session: AsyncSession,
        transaction_ids: Iterable[str],
        *,
        with_details: bool,
        with_seats: bool,
    ) -> dict[str, TicketTransaction]:
        transaction_rows = await self._fetch_by_ids(session, TicketTransactionTable, transaction_ids)
        details_by_transaction: dict[str, list[TicketTransactionDetail]] = {}
        if with_details and transaction_rows:
            result = await session.execute(
                select(TicketTransactionDetailTable)
                .where(TicketTransactionDetailTable.transaction_id.in_(list(transaction_rows)))
                .order_by(TicketTransactionDetailTable.id.asc())
            )
            detail_rows = list(result.scalars().all())
            seat_rows: dict[str, FlightSeatTable] = {}
            if with_seats:
                seat_rows = await self._fetch_by_ids(session, FlightSeatTable, [row.seat_id for row in detail_rows])
            for row in detail_rows:
                detail = self._table_to_detail(row)
                seat_row = seat_rows.get(row.seat_id)
                if seat_row is not None:
                    detail.seat = self._table_to_seat(seat_row)
                details_by_transaction.setdefault(row.transaction_id, []).append(detail)

        return {
            transaction_id: TicketTransaction(
                id=row.id,
                user_id=row.user_id,
                total_price=row.total_price,
                created_at=_ensure_datetime(row.created_at),
                details=details_by_transaction.get(transaction_id, []),
            )
            for transaction_id, row in transaction_rows.items()
        }

    # -- row conversion ----------------------------------------------------

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> Ticket:
        return Ticket(
            id=row.id,
            code=row.code,
            flight_id=row.flight_id,
            user_id=row.user_id,
            seat_id=row.seat_id,
            ticket_transaction_id=row.ticket_transaction_id,
            ticket_transaction_detail_id=row.ticket_transaction_detail_id,
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
        )

    @staticmethod
    def _table_to_flight(row: FlightTable) -> Flight:
        return Flight(
            id=row.id,
            code=row.code,
            plane_id=row.plane_id,
            departure_airport_id=row.departure_airport_id,
            destination_airport_id=row.destination_airport_id,
            transit_airport_id=row.transit_airport_id,
            departure_at=_optional_datetime(row.departure_at),
            arrival_at=_optional_datetime(row.arrival_at),
        )

    @staticmethod
    def _table_to_plane(row: PlaneTable) -> Plane:
        return Plane(id=row.id, code=row.code, name=row.name)

    @staticmethod
    def _airport_or_none(airports: dict[str, AirportTable], airport_id: str | None) -> Airport | None:
        row = airports.get(airport_id) if airport_id else None
        if row is None:
            return None
        return Airport(id=row.id, code=row.code, name=row.name, city=row.city)

    @staticmethod
    def _table_to_seat(row: FlightSeatTable) -> FlightSeat:
        return FlightSeat(id=row.id, flight_id=row.flight_id, seat_number=row.seat_number, is_booked=bool(row.is_booked))

    @staticmethod
    def _table_to_detail(row: TicketTransactionDetailTable) -> TicketTransactionDetail:
        return TicketTransactionDetail(
            id=row.id,
            transaction_id=row.transaction_id,
            seat_id=row.seat_id,
            price=row.price,
        )


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")


def _optional_datetime(value: datetime | None) -> datetime | None:
    return None if value is None else _ensure_datetime(value)
