"""End-to-end service behaviour against an in-memory database."""

from __future__ import annotations

import pytest

from apps.ticketing.services import (
    ResourceNotFoundError,
    SeatAlreadyBookedError,
    TicketIssuanceService,
    TicketMutationService,
    TicketQueryService,
    TicketReferences,
    TicketRenderingService,
    TicketRepository,
)
from packages.db.models import TicketTable


@pytest.mark.asyncio
async def test_issued_code_starts_with_airline_airport_flight_and_seat(repository: TicketRepository, seed):
    seeded = await seed(("12C",), airline_code="JT", airport_code="SUB", flight_code="JT610")
    service = TicketIssuanceService(repository)

    ticket = await service.issue_ticket(seeded.references(0))

    assert ticket.code == "JT-SUB-JT610-12C"
    seat = await repository.get_seat(seeded.seat_ids[0])
    assert seat is not None and seat.is_booked is True


@pytest.mark.asyncio
async def test_taken_base_code_gets_unique_suffix(repository: TicketRepository, seed, session_factory):
    seeded = await seed()
    async with session_factory() as session:
        async with session.begin():
            session.add(
                TicketTable(
                    code="GA-CGK-GA123-1A",
                    flight_id=seeded.flight_id,
                    user_id=seeded.user_id,
                    seat_id=seeded.seat_ids[1],
                    ticket_transaction_id=seeded.transaction_id,
                    ticket_transaction_detail_id=seeded.detail_ids[1],
                )
            )
    service = TicketIssuanceService(repository)

    ticket = await service.issue_ticket(seeded.references(0))

    assert ticket.code.startswith("GA-CGK-GA123-1A-")
    assert len(ticket.code) > len("GA-CGK-GA123-1A-")
    assert await repository.count_tickets(code=ticket.code) == 1


@pytest.mark.asyncio
async def test_second_issue_for_same_seat_conflicts(repository: TicketRepository, seed):
    seeded = await seed()
    service = TicketIssuanceService(repository)
    await service.issue_ticket(seeded.references(0))

    with pytest.raises(SeatAlreadyBookedError) as exc:
        await service.issue_ticket(seeded.references(0))

    assert exc.value.status_code == 409
    assert await repository.count_tickets() == 1


@pytest.mark.asyncio
async def test_missing_transaction_is_reported(repository: TicketRepository, seed):
    seeded = await seed()
    service = TicketIssuanceService(repository)
    references = seeded.references(0)

    with pytest.raises(ResourceNotFoundError, match="Ticket transaction not found"):
        await service.issue_ticket(
            TicketReferences(
                flight_id=references.flight_id,
                user_id=references.user_id,
                seat_id=references.seat_id,
                transaction_id="missing",
                detail_transaction_id=references.detail_transaction_id,
            )
        )
    seat = await repository.get_seat(seeded.seat_ids[0])
    assert seat is not None and seat.is_booked is False


@pytest.mark.asyncio
async def test_pagination_over_twenty_five_tickets(repository: TicketRepository, seed):
    seeded = await seed([f"{row}{col}" for row in range(1, 6) for col in "ABCDE"])
    issuance = TicketIssuanceService(repository)
    for index in range(25):
        await issuance.issue_ticket(seeded.references(index))
    query = TicketQueryService(repository)

    first = await query.list_tickets(limit=10, page=1)
    last = await query.list_tickets(limit=10, page=3)

    assert first.total_items == 25
    assert first.total_pages == 3
    assert first.page_items == 10
    assert first.next_page == 2
    assert first.prev_page is None
    assert last.page_items == 5
    assert last.next_page is None
    assert last.prev_page == 2
    assert {ticket.id for ticket in first.items}.isdisjoint(ticket.id for ticket in last.items)


@pytest.mark.asyncio
async def test_tickets_by_transaction_requires_rows(repository: TicketRepository, seed):
    seeded = await seed()
    query = TicketQueryService(repository)

    with pytest.raises(ResourceNotFoundError, match="Ticket not found"):
        await query.get_tickets_by_transaction(seeded.transaction_id)

    await TicketIssuanceService(repository).issue_ticket(seeded.references(0))
    tickets = await query.get_tickets_by_transaction(seeded.transaction_id)

    assert len(tickets) == 1
    assert tickets[0].user is not None and tickets[0].user.auth is not None
    assert tickets[0].ticket_transaction is not None
    assert tickets[0].ticket_transaction.details[0].seat is not None


@pytest.mark.asyncio
async def test_update_with_unknown_transaction_writes_nothing(repository: TicketRepository, seed):
    seeded = await seed()
    ticket = await TicketIssuanceService(repository).issue_ticket(seeded.references(0))
    mutation = TicketMutationService(repository)

    with pytest.raises(ResourceNotFoundError):
        await mutation.update_ticket(ticket.id, transaction_id="missing", references=seeded.references(1))

    stored = await repository.get_ticket(ticket.id)
    assert stored is not None
    assert stored.seat_id == seeded.seat_ids[0]

    updated = await mutation.update_ticket(
        ticket.id, transaction_id=seeded.transaction_id, references=seeded.references(1)
    )
    assert updated.seat_id == seeded.seat_ids[1]


@pytest.mark.asyncio
async def test_update_moves_seat_booking(repository: TicketRepository, seed):
    seeded = await seed(("1A", "1B"))
    issuance = TicketIssuanceService(repository)
    ticket = await issuance.issue_ticket(seeded.references(0))

    await TicketMutationService(repository).update_ticket(
        ticket.id, transaction_id=seeded.transaction_id, references=seeded.references(1)
    )

    old_seat = await repository.get_seat(seeded.seat_ids[0])
    new_seat = await repository.get_seat(seeded.seat_ids[1])
    assert old_seat is not None and old_seat.is_booked is False
    assert new_seat is not None and new_seat.is_booked is True
    with pytest.raises(SeatAlreadyBookedError):
        await issuance.issue_ticket(seeded.references(1))
    holders = await repository.list_tickets_by_transaction(seeded.transaction_id)
    assert [held.seat_id for held in holders].count(seeded.seat_ids[1]) == 1


@pytest.mark.asyncio
async def test_update_onto_held_seat_conflicts_and_writes_nothing(repository: TicketRepository, seed):
    seeded = await seed(("1A", "1B"))
    issuance = TicketIssuanceService(repository)
    first = await issuance.issue_ticket(seeded.references(0))
    await issuance.issue_ticket(seeded.references(1))
    mutation = TicketMutationService(repository)

    with pytest.raises(SeatAlreadyBookedError):
        await mutation.update_ticket(first.id, transaction_id=seeded.transaction_id, references=seeded.references(1))

    stored = await repository.get_ticket(first.id)
    assert stored is not None and stored.seat_id == seeded.seat_ids[0]
    seat = await repository.get_seat(seeded.seat_ids[0])
    assert seat is not None and seat.is_booked is True

    # keeping the same seat does not need a fresh claim
    kept = await mutation.update_ticket(
        first.id, transaction_id=seeded.transaction_id, references=seeded.references(0)
    )
    assert kept.seat_id == seeded.seat_ids[0]
    seat = await repository.get_seat(seeded.seat_ids[0])
    assert seat is not None and seat.is_booked is True


@pytest.mark.asyncio
async def test_delete_removes_exactly_one_ticket(repository: TicketRepository, seed):
    seeded = await seed()
    issuance = TicketIssuanceService(repository)
    first = await issuance.issue_ticket(seeded.references(0))
    await issuance.issue_ticket(seeded.references(1))
    mutation = TicketMutationService(repository)

    await mutation.delete_ticket(first.id, transaction_id=seeded.transaction_id)

    assert await repository.count_tickets() == 1
    assert await repository.get_ticket(first.id) is None
    with pytest.raises(ResourceNotFoundError):
        await mutation.delete_ticket(first.id, transaction_id=seeded.transaction_id)


@pytest.mark.asyncio
async def test_delete_last_ticket_then_fetch_is_not_found(repository: TicketRepository, seed):
    seeded = await seed()
    ticket = await TicketIssuanceService(repository).issue_ticket(seeded.references(0))

    await TicketMutationService(repository).delete_ticket(ticket.id, transaction_id=seeded.transaction_id)

    with pytest.raises(ResourceNotFoundError):
        await TicketQueryService(repository).get_tickets_by_transaction(seeded.transaction_id)


@pytest.mark.asyncio
async def test_render_bundle_collects_detail_seats_once(repository: TicketRepository, seed):
    seeded = await seed(("1A", "1B"))
    issuance = TicketIssuanceService(repository)
    await issuance.issue_ticket(seeded.references(0))
    await issuance.issue_ticket(seeded.references(1))
    rendering = TicketRenderingService(repository)

    bundle = await rendering.collect(user_id=seeded.user_id, transaction_id=seeded.transaction_id)
    other = await rendering.collect(user_id="someone-else", transaction_id=seeded.transaction_id)

    assert len(bundle.tickets) == 2
    assert sorted(seat.seat_number for seat in bundle.seats) == ["1A", "1B"]
    assert bundle.tickets[0].flight is not None and bundle.tickets[0].flight.plane is not None
    assert other.tickets == [] and other.seats == []
