from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from apps.ticketing.api.routes import ping, tickets
from apps.ticketing.core.config import Settings, get_settings
from apps.ticketing.core.errors import register_exception_handlers
from apps.ticketing.core.logging import configure_logging, init_tracer, shutdown_tracer
from apps.ticketing.services import (
    TicketIssuanceService,
    TicketMutationService,
    TicketQueryService,
    TicketRenderingService,
    TicketRepository,
)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def to_async_dsn(dsn: str) -> str:
    """Ensure the SQLAlchemy DSN uses an async driver."""

    if dsn.startswith("postgresql+asyncpg://"):
        return dsn
    if dsn.startswith("postgresql://"):
        return "postgresql+asyncpg://" + dsn[len("postgresql://") :]
    if dsn.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + dsn[len("sqlite://") :]
    return dsn


def install_services(app: FastAPI, repository: TicketRepository, settings: Settings) -> None:
    """Wire one repository into every ticket service on ``app.state``."""

    app.state.ticket_repository = repository
    app.state.ticket_issuance_service = TicketIssuanceService(
        repository, max_code_attempts=settings.ticket_code_max_attempts
    )
    app.state.ticket_query_service = TicketQueryService(repository, default_page_size=settings.default_page_size)
    app.state.ticket_mutation_service = TicketMutationService(repository)
    app.state.ticket_rendering_service = TicketRenderingService(repository)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    db_engine: AsyncEngine = create_async_engine(
        to_async_dsn(settings.database_url), echo=settings.database_echo, future=True
    )
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    repository = TicketRepository(session_factory, engine=db_engine)
    try:
        if settings.create_schema_on_startup:
            await repository.ensure_schema()
        install_services(app, repository, settings)
        logger.info("Ticketing API started (%s)", settings.environment)
        yield
    finally:
        await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.templates = Jinja2Templates(directory=settings.templates_dir or str(TEMPLATES_DIR))
    register_exception_handlers(app)
    app.include_router(ping.router)
    app.include_router(tickets.router)
    return app


app = create_app()
