"""Demo data bootstrap.

Creates the demo landlord, renter, unit and lease the portals expect on a
fresh database:
1. Get or create both demo users (by email)
2. Get or create the demo unit for the landlord (by title)
3. Create the demo lease unless the unit already has an active one

Safe to run on every startup; a second run changes nothing.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.lease import Lease
from src.models.rental_unit import RentalUnit
from src.models.user import User, UserRole
from src.services.auth_service import identity_for
from src.services.errors import StorageError
from src.services.registry_service import LeaseRegistry

logger = logging.getLogger(__name__)

DEMO_LANDLORD_EMAIL = "landlord@demo.com"
DEMO_RENTER_EMAIL = "renter@demo.com"
DEMO_UNIT_TITLE = "Demo Duplex"
DEMO_UNIT_ADDRESS = "500 Oak St, Demo City"
DEMO_RENT = Decimal("1200")
DEMO_DUE_DAY = 1


@dataclass
class SeedResult:
    """Result of a demo seed run."""

    landlord: User
    renter: User
    unit: RentalUnit
    lease: Lease

    users_created: int = 0
    """Number of demo users inserted by this run"""

    unit_created: bool = False
    lease_created: bool = False


async def get_or_create_user(
    session: AsyncSession, email: str, full_name: str, role: UserRole
) -> tuple[User, bool]:
    """Find a user by email or insert one.

    Returns:
        (user, created)
    """
    email = email.strip().lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is not None:
        return user, False

    user = User(email=email, full_name=full_name, role=role.value)
    session.add(user)
    await session.flush()
    logger.info("Created user: %s (%s)", email, role.value)
    return user, True


async def seed_demo_data(session: AsyncSession, today: date | None = None) -> SeedResult:
    """Make sure the demo landlord, renter, unit and lease exist.

    Raises:
        StorageError: Database write failed (nothing from this run is kept)
    """
    today = today or date.today()
    try:
        landlord, landlord_created = await get_or_create_user(
            session, DEMO_LANDLORD_EMAIL, "Demo Landlord", UserRole.LANDLORD
        )
        renter, renter_created = await get_or_create_user(
            session, DEMO_RENTER_EMAIL, "Demo Renter", UserRole.RENTER
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Demo seed failed: %s", e, exc_info=True)
        raise StorageError("Could not seed demo users.") from e

    registry = LeaseRegistry(session)
    owner = identity_for(landlord)

    result = await session.execute(
        select(RentalUnit).where(
            RentalUnit.landlord_id == landlord.id, RentalUnit.title == DEMO_UNIT_TITLE
        )
    )
    unit = result.scalars().first()
    unit_created = unit is None
    if unit is None:
        unit = await registry.create_unit(
            owner, DEMO_UNIT_TITLE, DEMO_UNIT_ADDRESS, monthly_rent=DEMO_RENT, stage="Reviewing"
        )

    lease = await registry.get_active_lease_for_unit(unit.id)
    lease_created = lease is None
    if lease is None:
        lease = await registry.create_lease(
            owner,
            unit_id=unit.id,
            renter_id=renter.id,
            monthly_rent=DEMO_RENT,
            due_day=DEMO_DUE_DAY,
            start_date=today,
            occupants_count=1,
            initial_balance=DEMO_RENT,
        )

    users_created = int(landlord_created) + int(renter_created)
    if users_created or unit_created or lease_created:
        logger.info(
            "Demo data seeded: users=%s unit=%s lease=%s", users_created, unit_created, lease_created
        )
    else:
        logger.debug("Demo data already present")

    return SeedResult(
        landlord=landlord,
        renter=renter,
        unit=unit,
        lease=lease,
        users_created=users_created,
        unit_created=unit_created,
        lease_created=lease_created,
    )


__all__ = ["SeedResult", "seed_demo_data", "get_or_create_user"]
