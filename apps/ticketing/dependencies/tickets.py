from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request
from fastapi.templating import Jinja2Templates

from apps.ticketing.services import (
    TicketIssuanceService,
    TicketMutationService,
    TicketQueryService,
    TicketRenderingService,
    TicketRepository,
)


def _from_state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail="Ticket service is not available")
    return value


async def get_ticket_repository(request: Request) -> TicketRepository:
    return _from_state(request, "ticket_repository")


async def get_issuance_service(request: Request) -> TicketIssuanceService:
    return _from_state(request, "ticket_issuance_service")


async def get_query_service(request: Request) -> TicketQueryService:
    return _from_state(request, "ticket_query_service")


async def get_mutation_service(request: Request) -> TicketMutationService:
    return _from_state(request, "ticket_mutation_service")


async def get_rendering_service(request: Request) -> TicketRenderingService:
    return _from_state(request, "ticket_rendering_service")


async def get_templates(request: Request) -> Jinja2Templates:
    return _from_state(request, "templates")


TicketRepositoryDep = Annotated[TicketRepository, Depends(get_ticket_repository)]
IssuanceServiceDep = Annotated[TicketIssuanceService, Depends(get_issuance_service)]
QueryServiceDep = Annotated[TicketQueryService, Depends(get_query_service)]
MutationServiceDep = Annotated[TicketMutationService, Depends(get_mutation_service)]
RenderingServiceDep = Annotated[TicketRenderingService, Depends(get_rendering_service)]
TemplatesDep = Annotated[Jinja2Templates, Depends(get_templates)]
