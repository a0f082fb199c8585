from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from apps.ticketing.services import TicketReferences, TicketRepository
from packages.db.models import (
    AirportTable,
    AuthTable,
    FlightSeatTable,
    FlightTable,
    PlaneTable,
    TicketTransactionDetailTable,
    TicketTransactionTable,
    UserTable,
)


@dataclass
class SeededFlight:
    flight_id: str
    user_id: str
    transaction_id: str
    seat_ids: list[str]
    detail_ids: list[str]
    airline_code: str
    airport_code: str
    flight_code: str
    seat_numbers: list[str] = field(default_factory=list)

    def references(self, index: int = 0) -> TicketReferences:
        return TicketReferences(
            flight_id=self.flight_id,
            user_id=self.user_id,
            seat_id=self.seat_ids[index],
            transaction_id=self.transaction_id,
            detail_transaction_id=self.detail_ids[index],
        )


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def repository(session_factory: async_sessionmaker, engine: AsyncEngine) -> TicketRepository:
    return TicketRepository(session_factory, engine=engine)


@pytest_asyncio.fixture
async def seed(session_factory: async_sessionmaker) -> Callable[..., Awaitable[SeededFlight]]:
    async def _seed(
        seat_numbers: Sequence[str] = ("1A", "1B"),
        *,
        airline_code: str = "GA",
        airport_code: str = "CGK",
        flight_code: str = "GA123",
        email: str = "buyer@test.com",
    ) -> SeededFlight:
        departure = AirportTable(code=airport_code, name="Soekarno-Hatta", city="Jakarta")
        destination = AirportTable(code=f"{airport_code}X", name="Ngurah Rai", city="Denpasar")
        plane = PlaneTable(code=airline_code, name="Boeing 737")
        flight = FlightTable(
            code=flight_code,
            plane_id=plane.id,
            departure_airport_id=departure.id,
            destination_airport_id=destination.id,
        )
        user = UserTable(name="Buyer", role="BUYER", phone_number="628123456789")
        auth = AuthTable(user_id=user.id, email=email, password="hashed", is_verified=True)
        transaction = TicketTransactionTable(user_id=user.id, total_price=0)
        seats = [FlightSeatTable(flight_id=flight.id, seat_number=number) for number in seat_numbers]
        details = [
            TicketTransactionDetailTable(transaction_id=transaction.id, seat_id=seat.id, price=1_000_000)
            for seat in seats
        ]
        async with session_factory() as session:
            async with session.begin():
                session.add_all([departure, destination, plane, user])
                await session.flush()
                session.add_all([flight, auth, transaction])
                await session.flush()
                session.add_all(seats)
                await session.flush()
                session.add_all(details)
        return SeededFlight(
            flight_id=flight.id,
            user_id=user.id,
            transaction_id=transaction.id,
            seat_ids=[seat.id for seat in seats],
            detail_ids=[detail.id for detail in details],
            airline_code=airline_code,
            airport_code=airport_code,
            flight_code=flight_code,
            seat_numbers=list(seat_numbers),
        )

    return _seed
