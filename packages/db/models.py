"""SQLModel table definitions for the airline ticketing data layer."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    """Generate a random UUID string."""

    return str(uuid.uuid4())


class UserTable(SQLModel, table=True):
    """Customer accounts able to buy tickets."""

    __tablename__ = "users"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))
    role: str = Field(default="BUYER", sa_column=Column(String(50), nullable=False, default="BUYER"))
    phone_number: str | None = Field(default=None, sa_column=Column(String(50), nullable=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class AuthTable(SQLModel, table=True):
    """Credentials attached to a user account."""

    __tablename__ = "auths"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    user_id: str = Field(
        sa_column=Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    )
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True))
    password: str = Field(sa_column=Column(String(255), nullable=False))
    is_verified: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))


class AirportTable(SQLModel, table=True):
    __tablename__ = "airports"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    code: str = Field(sa_column=Column(String(10), nullable=False, unique=True))
    name: str = Field(sa_column=Column(String(255), nullable=False))
    city: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))


class PlaneTable(SQLModel, table=True):
    """Aircraft operated by an airline; ``code`` is the airline code."""

    __tablename__ = "planes"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    code: str = Field(sa_column=Column(String(20), nullable=False))
    name: str = Field(sa_column=Column(String(255), nullable=False))


class FlightTable(SQLModel, table=True):
    """Scheduled flight between two airports with an optional transit stop."""

    __tablename__ = "flights"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    code: str = Field(sa_column=Column(String(20), nullable=False))
    plane_id: str = Field(sa_column=Column(String(36), ForeignKey("planes.id"), nullable=False))
    departure_airport_id: str = Field(sa_column=Column(String(36), ForeignKey("airports.id"), nullable=False))
    transit_airport_id: str | None = Field(
        default=None, sa_column=Column(String(36), ForeignKey("airports.id"), nullable=True)
    )
    destination_airport_id: str = Field(sa_column=Column(String(36), ForeignKey("airports.id"), nullable=False))
    departure_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    arrival_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class FlightSeatTable(SQLModel, table=True):
    """Seat slot on a flight."""

    __tablename__ = "flight_seats"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    flight_id: str = Field(
        sa_column=Column(String(36), ForeignKey("flights.id", ondelete="CASCADE"), nullable=False)
    )
    seat_number: str = Field(sa_column=Column(String(10), nullable=False))
    is_booked: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))


class TicketTransactionTable(SQLModel, table=True):
    """Purchase grouping one or more tickets."""

    __tablename__ = "ticket_transactions"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    user_id: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    total_price: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketTransactionDetailTable(SQLModel, table=True):
    """Single seat line of a ticket transaction."""

    __tablename__ = "ticket_transaction_details"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    transaction_id: str = Field(
        sa_column=Column(String(36), ForeignKey("ticket_transactions.id", ondelete="CASCADE"), nullable=False)
    )
    seat_id: str = Field(sa_column=Column(String(36), ForeignKey("flight_seats.id"), nullable=False))
    price: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))


class TicketTable(SQLModel, table=True):
    """Issued ticket linking a seat on a flight to a purchase."""

    __tablename__ = "tickets"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    code: str = Field(sa_column=Column(String(255), nullable=False, unique=True))
    flight_id: str = Field(sa_column=Column(String(36), ForeignKey("flights.id"), nullable=False))
    user_id: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    seat_id: str = Field(sa_column=Column(String(36), ForeignKey("flight_seats.id"), nullable=False))
    ticket_transaction_id: str = Field(
        sa_column=Column(String(36), ForeignKey("ticket_transactions.id"), nullable=False, index=True)
    )
    ticket_transaction_detail_id: str = Field(
        sa_column=Column(String(36), ForeignKey("ticket_transaction_details.id"), nullable=False)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
