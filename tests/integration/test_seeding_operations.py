"""Integration tests for the demo data bootstrap."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from src.models import Lease, RentalUnit, User
from src.services.seeding import seed_demo_data

pytestmark = pytest.mark.integration


async def _count(session, model) -> int:
    return (await session.execute(select(func.count(model.id)))).scalar_one()


async def test_seed_creates_demo_records(session):
    result = await seed_demo_data(session, today=date(2026, 10, 16))

    assert result.users_created == 2
    assert result.unit_created and result.lease_created
    assert result.landlord.email == "landlord@demo.com"
    assert result.renter.email == "renter@demo.com"
    assert result.unit.title == "Demo Duplex"
    assert result.unit.address == "500 Oak St, Demo City"
    assert result.unit.stage == "Reviewing"
    assert result.lease.monthly_rent == Decimal("1200")
    assert result.lease.due_day == 1
    assert result.lease.current_balance == Decimal("1200")
    assert result.lease.opening_balance == Decimal("1200")
    assert result.lease.start_date == date(2026, 10, 16)


async def test_seed_is_idempotent(session):
    first = await seed_demo_data(session)
    second = await seed_demo_data(session)

    assert second.users_created == 0
    assert not second.unit_created
    assert not second.lease_created
    assert second.lease.id == first.lease.id
    assert await _count(session, User) == 2
    assert await _count(session, RentalUnit) == 1
    assert await _count(session, Lease) == 1


async def test_seed_keeps_existing_balance(session):
    first = await seed_demo_data(session)
    first.lease.current_balance = Decimal("0")
    await session.commit()

    second = await seed_demo_data(session)

    assert second.lease.current_balance == Decimal("0")
