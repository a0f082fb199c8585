"""Airline ticketing schema."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default=sa.text("'BUYER'")),
        sa.Column("phone_number", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    op.create_table(
        "auths",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )

    op.create_table(
        "airports",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=10), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=255), nullable=True),
    )

    op.create_table(
        "planes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
    )

    op.create_table(
        "flights",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("plane_id", sa.String(length=36), sa.ForeignKey("planes.id"), nullable=False),
        sa.Column("departure_airport_id", sa.String(length=36), sa.ForeignKey("airports.id"), nullable=False),
        sa.Column("transit_airport_id", sa.String(length=36), sa.ForeignKey("airports.id"), nullable=True),
        sa.Column("destination_airport_id", sa.String(length=36), sa.ForeignKey("airports.id"), nullable=False),
        sa.Column("departure_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("arrival_at", sa.TIMESTAMP(timezone=True), nullable=True),
    )

    op.create_table(
        "flight_seats",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("flight_id", sa.String(length=36), sa.ForeignKey("flights.id", ondelete="CASCADE"), nullable=False),
        sa.Column("seat_number", sa.String(length=10), nullable=False),
        sa.Column("is_booked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )

    op.create_table(
        "ticket_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("total_price", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    op.create_table(
        "ticket_transaction_details",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "transaction_id",
            sa.String(length=36),
            sa.ForeignKey("ticket_transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("seat_id", sa.String(length=36), sa.ForeignKey("flight_seats.id"), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "tickets",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=255), nullable=False, unique=True),
        sa.Column("flight_id", sa.String(length=36), sa.ForeignKey("flights.id"), nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("seat_id", sa.String(length=36), sa.ForeignKey("flight_seats.id"), nullable=False),
        sa.Column(
            "ticket_transaction_id",
            sa.String(length=36),
            sa.ForeignKey("ticket_transactions.id"),
            nullable=False,
        ),
        sa.Column(
            "ticket_transaction_detail_id",
            sa.String(length=36),
            sa.ForeignKey("ticket_transaction_details.id"),
            nullable=False,
        ),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_tickets_ticket_transaction_id", "tickets", ["ticket_transaction_id"])


def downgrade() -> None:
    op.drop_index("ix_tickets_ticket_transaction_id", table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("ticket_transaction_details")
    op.drop_table("ticket_transactions")
    op.drop_table("flight_seats")
    op.drop_table("flights")
    op.drop_table("planes")
    op.drop_table("airports")
    op.drop_table("auths")
    op.drop_table("users")
