"""Database models and utilities."""

from .models import (
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

__all__ = [
    "AirportTable",
    "AuthTable",
    "FlightSeatTable",
    "FlightTable",
    "PlaneTable",
    "TicketTable",
    "TicketTransactionDetailTable",
    "TicketTransactionTable",
    "UserTable",
]
