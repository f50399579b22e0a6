"""Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database; API tests swap the app's
session dependency for one bound to that database.
"""

import os
from datetime import date
from decimal import Decimal

# Set test environment BEFORE any imports from src
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOCALE"] = "en_US"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.api.app import app  # noqa: E402
from src.models import Base, Lease, RentalUnit, User, UserRole  # noqa: E402
from src.services import get_async_session  # noqa: E402
from src.services.auth_service import create_access_token, identity_for  # noqa: E402


@pytest.fixture
async def engine():
    """Fresh in-memory database with all tables created."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    """Provide a test database session."""
    async with session_factory() as db_session:
        yield db_session


async def _add(session: AsyncSession, obj):
    session.add(obj)
    await session.commit()
    await session.refresh(obj)
    return obj


@pytest.fixture
async def landlord(session) -> User:
    return await _add(
        session, User(email="landlord@example.com", full_name="Lana Landlord", role=UserRole.LANDLORD.value)
    )


@pytest.fixture
async def other_landlord(session) -> User:
    return await _add(
        session, User(email="other@example.com", full_name="Oscar Other", role=UserRole.LANDLORD.value)
    )


@pytest.fixture
async def renter(session) -> User:
    return await _add(
        session, User(email="renter@example.com", full_name="Rita Renter", role=UserRole.RENTER.value)
    )


@pytest.fixture
async def other_renter(session) -> User:
    return await _add(session, User(email="someone@example.com", role=UserRole.RENTER.value))


@pytest.fixture
async def unit(session, landlord) -> RentalUnit:
    return await _add(
        session,
        RentalUnit(
            landlord_id=landlord.id,
            title="Maple Flat",
            address="12 Maple Rd",
            stage="Listed",
            monthly_rent=Decimal("1200"),
        ),
    )


@pytest.fixture
async def lease(session, unit, renter) -> Lease:
    """Active lease: rent 1200, due day 1, opening balance 1200."""
    return await _add(
        session,
        Lease(
            unit_id=unit.id,
            renter_id=renter.id,
            start_date=date(2026, 1, 1),
            occupants_count=1,
            monthly_rent=Decimal("1200"),
            due_day=1,
            opening_balance=Decimal("1200"),
            current_balance=Decimal("1200"),
            is_active=True,
        ),
    )


@pytest.fixture
def landlord_identity(landlord):
    return identity_for(landlord)


@pytest.fixture
def other_landlord_identity(other_landlord):
    return identity_for(other_landlord)


@pytest.fixture
def renter_identity(renter):
    return identity_for(renter)


@pytest.fixture
def other_renter_identity(other_renter):
    return identity_for(other_renter)


@pytest.fixture
def landlord_headers(landlord) -> dict:
    return {"Authorization": f"Bearer {create_access_token(landlord)}"}


@pytest.fixture
def renter_headers(renter) -> dict:
    return {"Authorization": f"Bearer {create_access_token(renter)}"}


@pytest.fixture
async def client(session_factory):
    """AsyncClient against the app with the test database behind it."""

    async def override_get_async_session():
        async with session_factory() as db_session:
            yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
