"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.api.deps import get_db, get_gateway
from app.infrastructure.asaas_client import (
    AsaasClient,
    CheckoutLinkCreated,
    CustomerCreated,
    parse_checkout_status,
)
from app.persistence.database import Base
from app.persistence.models import *  # noqa: F401, F403
from app.persistence.models.checkout_link import CheckoutLink
from app.persistence.models.lead import Lead


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite engine with working SAVEPOINTs."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway():
    """Asaas client double with every network call mocked."""
    mock = MagicMock(spec=AsaasClient)
    mock.get_checkout_status = AsyncMock()
    mock.create_customer = AsyncMock(
        return_value=CustomerCreated(external_customer_id="cus_000001")
    )
    mock.create_checkout_link = AsyncMock(
        return_value=CheckoutLinkCreated(
            external_checkout_id="chk_new", url="https://asaas.test/c/chk_new", status="ACTIVE"
        )
    )
    mock.find_customer_by_document = AsyncMock(return_value=None)
    mock.get_payment = AsyncMock(return_value=None)
    mock.cancel_checkout_link = AsyncMock(return_value=None)
    return mock


def _completed_checkout(
    external_checkout_id: str = "chk_1",
    email: str = "ana@example.com",
    payment_status: str | None = "CONFIRMED",
    payment_id: str = "pay_1",
    checkout_status: str = "ACTIVE",
    customer_id: str | None = None,
    value: float = 150.0,
):
    """Gateway state of a checkout whose form was filled in."""
    data = {
        "id": external_checkout_id,
        "status": checkout_status,
        "customer": {
            "id": customer_id,
            "name": "Ana Souza",
            "email": email,
            "mobilePhone": "11999990000",
            "cpfCnpj": "12345678909",
        },
    }
    if payment_status is not None:
        data["payment"] = {
            "id": payment_id,
            "status": payment_status,
            "value": value,
            "billingType": "PIX",
            "dueDate": "2026-11-01",
        }
    return parse_checkout_status(external_checkout_id, data)


def _open_checkout(external_checkout_id: str = "chk_1"):
    """Gateway state of a checkout nobody has filled in yet."""
    return parse_checkout_status(external_checkout_id, {"id": external_checkout_id, "active": True})


@pytest.fixture
def completed_checkout():
    """Factory for gateway states with a filled-in form."""
    return _completed_checkout


@pytest.fixture
def open_checkout():
    """Factory for gateway states with an untouched form."""
    return _open_checkout


@pytest.fixture
async def lead_with_checkout(db_session):
    """A fresh lead with one pending checkout link (external id chk_1)."""
    lead = Lead(name="Ana Souza", email="ana@example.com", phone="11999990000", segment="fitness")
    db_session.add(lead)
    await db_session.flush()

    link = CheckoutLink(
        external_checkout_id="chk_1",
        lead_id=lead.id,
        status="pending",
        url="https://asaas.test/c/chk_1",
        description="Monthly plan",
        value=Decimal("150.00"),
        due_date=date(2026, 11, 1),
    )
    db_session.add(link)
    await db_session.commit()
    return lead, link


@pytest.fixture
def api_client(gateway):
    """Create a test FastAPI client with the database and gateway overridden.

    Route tests patch the services; the session handed to them is a mock.
    """
    from fastapi.testclient import TestClient
    from app.main import app

    app.dependency_overrides[get_db] = lambda: MagicMock(spec=AsyncSession)
    app.dependency_overrides[get_gateway] = lambda: gateway

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
