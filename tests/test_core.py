import logging

import pytest
from fastapi import HTTPException

from apps.ticketing.core.config import Settings
from apps.ticketing.core.logging import configure_logging, init_tracer, parse_otlp_headers
from apps.ticketing.dependencies.auth import resolve_user_from_token
from apps.ticketing.main import to_async_dsn
from apps.ticketing.services import TicketPage


def test_parse_otlp_headers_skips_malformed_items():
    assert parse_otlp_headers(None) == {}
    assert parse_otlp_headers("api-key=abc, team = ops,broken,=x") == {"api-key": "abc", "team": "ops"}


def test_configure_logging_uses_settings_level():
    logger = configure_logging(Settings(log_level="debug"))

    assert logger.name == "apps.ticketing"
    assert logger.level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_tracer_is_disabled_by_default():
    assert init_tracer(Settings()) is None


def test_to_async_dsn_selects_async_drivers():
    assert to_async_dsn("postgresql://u:p@db/app") == "postgresql+asyncpg://u:p@db/app"
    assert to_async_dsn("postgresql+asyncpg://u:p@db/app") == "postgresql+asyncpg://u:p@db/app"
    assert to_async_dsn("sqlite:///./tickets.db") == "sqlite+aiosqlite:///./tickets.db"


def test_resolve_user_from_token():
    user = resolve_user_from_token("secret", {"secret": "user-1"})
    assert user.user_id == "user-1"

    with pytest.raises(HTTPException) as missing:
        resolve_user_from_token(None, {"secret": "user-1"})
    assert missing.value.status_code == 401

    with pytest.raises(HTTPException) as invalid:
        resolve_user_from_token("other", {"secret": "user-1"})
    assert invalid.value.detail == "Invalid authentication credentials"


@pytest.mark.parametrize(
    ("total", "page", "expected"),
    [
        (25, 1, (3, 2, None)),
        (25, 3, (3, None, 2)),
        (0, 1, (0, None, None)),
        (10, 1, (1, None, None)),
    ],
)
def test_ticket_page_arithmetic(total, page, expected):
    result = TicketPage(items=[], total_items=total, page=page, limit=10)
    assert (result.total_pages, result.next_page, result.prev_page) == expected
