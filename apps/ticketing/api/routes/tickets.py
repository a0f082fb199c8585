from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from apps.ticketing.dependencies.auth import CurrentUser
from apps.ticketing.dependencies.tickets import (
    IssuanceServiceDep,
    MutationServiceDep,
    QueryServiceDep,
    RenderingServiceDep,
    TemplatesDep,
)
from apps.ticketing.services import TicketReferences

router = APIRouter(prefix="/tickets", tags=["tickets"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AuthModel(CamelModel):
    id: str
    email: str
    is_verified: bool


class UserModel(CamelModel):
    id: str
    name: str
    role: str
    phone_number: str | None = None
    auth: AuthModel | None = None


class AirportModel(CamelModel):
    id: str
    code: str
    name: str
    city: str | None = None


class PlaneModel(CamelModel):
    id: str
    code: str
    name: str


class FlightModel(CamelModel):
    id: str
    code: str
    plane_id: str
    departure_airport_id: str
    transit_airport_id: str | None = None
    destination_airport_id: str
    departure_at: datetime | None = None
    arrival_at: datetime | None = None
    plane: PlaneModel | None = None
    departure_airport: AirportModel | None = None
    transit_airport: AirportModel | None = None
    destination_airport: AirportModel | None = None


class SeatModel(CamelModel):
    id: str
    flight_id: str
    seat_number: str
    is_booked: bool


class TransactionDetailModel(CamelModel):
    id: str
    transaction_id: str
    seat_id: str
    price: int
    seat: SeatModel | None = None


class TransactionModel(CamelModel):
    id: str
    user_id: str
    total_price: int
    created_at: datetime
    details: list[TransactionDetailModel] = Field(default_factory=list)


class TicketModel(CamelModel):
    id: str
    code: str
    flight_id: str
    user_id: str
    seat_id: str
    ticket_transaction_id: str
    ticket_transaction_detail_id: str
    created_at: datetime
    updated_at: datetime
    flight: FlightModel | None = None
    user: UserModel | None = None
    seat: SeatModel | None = None
    ticket_transaction: TransactionModel | None = None
    ticket_transaction_detail: TransactionDetailModel | None = None


class PaginationModel(CamelModel):
    total_pages: int
    current_page: int
    page_items: int
    next_page: int | None = None
    prev_page: int | None = None


class TicketListResponse(CamelModel):
    status: bool = True
    total_items: int
    pagination: PaginationModel
    data: list[TicketModel]


class TicketCollectionResponse(CamelModel):
    status: bool = True
    message: str
    data: list[TicketModel]


class TicketResponse(CamelModel):
    status: bool = True
    message: str
    data: TicketModel


class MessageResponse(CamelModel):
    status: bool = True
    message: str


class TicketPayload(CamelModel):
    """Request body for creating or re-pointing a ticket."""

    flight_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    seat_id: str = Field(..., min_length=1)
    transaction_id: str = Field(..., min_length=1)
    detail_transaction_id: str = Field(..., min_length=1)

    def to_references(self) -> TicketReferences:
        return TicketReferences(
            flight_id=self.flight_id,
            user_id=self.user_id,
            seat_id=self.seat_id,
            transaction_id=self.transaction_id,
            detail_transaction_id=self.detail_transaction_id,
        )


@router.get("", response_model=TicketListResponse, summary="Search tickets by code")
async def list_tickets(
    service: QueryServiceDep,
    search: str = Query(default=""),
    code: str = Query(default=""),
    limit: int | None = Query(default=None, ge=1),
    page: int | None = Query(default=None, ge=1),
) -> TicketListResponse:
    result = await service.list_tickets(search=search, code=code, limit=limit, page=page)
    return TicketListResponse(
        total_items=result.total_items,
        pagination=PaginationModel(
            total_pages=result.total_pages,
            current_page=result.page,
            page_items=result.page_items,
            next_page=result.next_page,
            prev_page=result.prev_page,
        ),
        data=[TicketModel.model_validate(ticket) for ticket in result.items],
    )


@router.get("/generate", response_class=HTMLResponse, summary="Render the caller's tickets for a transaction")
async def generate_tickets(
    request: Request,
    service: RenderingServiceDep,
    templates: TemplatesDep,
    user: CurrentUser,
    ticket_transaction_id: str = Query(..., alias="ticketTransactionId", min_length=1),
) -> HTMLResponse:
    bundle = await service.collect(user_id=user.user_id, transaction_id=ticket_transaction_id)
    return templates.TemplateResponse(
        request,
        "ticket.html",
        {"data": bundle.tickets, "tickets": bundle.tickets, "seats": bundle.seats},
    )


@router.get("/{ticket_transaction_id}", response_model=TicketCollectionResponse)
async def get_tickets_by_transaction(
    ticket_transaction_id: str,
    service: QueryServiceDep,
) -> TicketCollectionResponse:
    tickets = await service.get_tickets_by_transaction(ticket_transaction_id)
    return TicketCollectionResponse(
        message="Ticket data retrieved successfully",
        data=[TicketModel.model_validate(ticket) for ticket in tickets],
    )


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketPayload, service: IssuanceServiceDep) -> TicketResponse:
    ticket = await service.issue_ticket(payload.to_references())
    return TicketResponse(message="Ticket created successfully", data=TicketModel.model_validate(ticket))


@router.put("/{ticket_transaction_id}/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_transaction_id: str,
    ticket_id: str,
    payload: TicketPayload,
    service: MutationServiceDep,
) -> TicketResponse:
    ticket = await service.update_ticket(
        ticket_id,
        transaction_id=ticket_transaction_id,
        references=payload.to_references(),
    )
    return TicketResponse(message="Ticket updated successfully", data=TicketModel.model_validate(ticket))


@router.delete("/{ticket_transaction_id}/{ticket_id}", response_model=MessageResponse)
async def delete_ticket(
    ticket_transaction_id: str,
    ticket_id: str,
    service: MutationServiceDep,
) -> MessageResponse:
    await service.delete_ticket(ticket_id, transaction_id=ticket_transaction_id)
    return MessageResponse(message="Ticket deleted successfully")
