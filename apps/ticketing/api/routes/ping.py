from fastapi import APIRouter

from apps.ticketing.dependencies.tickets import TicketRepositoryDep

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health probe")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/database", summary="Database connectivity probe")
async def ping_database(repository: TicketRepositoryDep) -> dict[str, str]:
    await repository.ping()
    return {"status": "ok", "database": "reachable"}
