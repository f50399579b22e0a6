"""Lease and property registry.

Resolves unit -> landlord -> lease -> renter relationships, creates units and
leases, and keeps at most one active lease per unit.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.lease import Lease
from src.models.ledger_entry import LedgerEntry
from src.models.rental_unit import RentalUnit
from src.models.user import User, UserRole
from src.services.auth_service import IdentityContext
from src.services.balance_service import parse_amount
from src.services.errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from src.services.ledger_service import LedgerEntryStore

logger = logging.getLogger(__name__)

DEFAULT_STAGE = "Reviewing"


@dataclass
class UnitWithLease:
    """A landlord's unit and its active lease (None when vacant)."""

    unit: RentalUnit
    active_lease: Optional[Lease]
    renter: Optional[User] = None


@dataclass
class LeaseListing:
    """Lease joined with the unit and renter details landlords see."""

    lease: Lease
    unit: RentalUnit
    renter: Optional[User]


@dataclass
class RenterLease:
    """A renter's most recent lease with its ledger."""

    lease: Lease
    unit: RentalUnit
    entries: List[LedgerEntry]


def _require_landlord(requester: IdentityContext) -> None:
    if not requester.is_landlord:
        raise AuthorizationError("Only landlords can do this action.")


def _parse_due_day(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Due day should be a day of the month (1-31).", field="due_day")
    try:
        number = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(
            "Due day should be a day of the month (1-31).", field="due_day"
        ) from e
    if not number.is_finite() or number != number.to_integral_value() or not 1 <= number <= 31:
        raise ValidationError("Due day should be a day of the month (1-31).", field="due_day")
    return int(number)


class LeaseRegistry:
    """Units, leases and who they belong to."""

    def __init__(self, session: AsyncSession):
        """Initialize with database session."""
        self.session = session
        self.store = LedgerEntryStore(session)

    async def create_unit(
        self,
        requester: IdentityContext,
        title: str | None,
        address: str | None,
        monthly_rent: Any = 0,
        image_url: str | None = None,
        stage: str | None = None,
    ) -> RentalUnit:
        """Create a rental unit owned by the requesting landlord.

        Raises:
            AuthorizationError: Requester is not a landlord
            ValidationError: Missing title/address or negative rent
        """
        _require_landlord(requester)
        title = (title or "").strip()
        address = (address or "").strip()
        if not title or not address:
            raise ValidationError(
                "Title and address are required.", field="title" if not title else "address"
            )
        rent = parse_amount(monthly_rent if monthly_rent not in (None, "") else 0, field="monthly_rent")
        if rent < 0:
            raise ValidationError("Monthly rent must not be negative.", field="monthly_rent")

        unit = RentalUnit(
            landlord_id=requester.subject_id,
            title=title,
            address=address,
            image_url=image_url or None,
            stage=(stage or "").strip() or DEFAULT_STAGE,
            monthly_rent=rent,
        )
        self.session.add(unit)
        await self._commit("unit")
        await self.session.refresh(unit)
        logger.info(
            "Created unit: unit_id=%s landlord_id=%s title=%r", unit.id, unit.landlord_id, unit.title
        )
        return unit

    async def create_lease(
        self,
        requester: IdentityContext,
        unit_id: Any,
        renter_id: Any,
        monthly_rent: Any,
        due_day: Any,
        start_date: date | None = None,
        occupants_count: Any = 1,
        initial_balance: Any = 0,
    ) -> Lease:
        """Create an active lease on a unit the requester owns.

        Any lease already active on the unit is deactivated in the same
        transaction. The initial balance is stored as the opening balance;
        it is not a ledger entry.

        Raises:
            ValidationError: Bad rent, due day, occupants or initial balance
            NotFoundError: Unknown unit or renter
            AuthorizationError: Requester does not own the unit
            StorageError: Database write failed
        """
        _require_landlord(requester)
        if not unit_id or not renter_id:
            raise ValidationError(
                "Property and renter are required.", field="unit_id" if not unit_id else "renter_id"
            )

        rent = parse_amount(monthly_rent, field="monthly_rent")
        if rent <= 0:
            raise ValidationError("Monthly rent must be a positive number.", field="monthly_rent")
        due = _parse_due_day(due_day)
        try:
            occupants = int(occupants_count if occupants_count is not None else 1)
        except (TypeError, ValueError) as e:
            raise ValidationError("Occupants must be a whole number.", field="occupants_count") from e
        if occupants < 1:
            raise ValidationError("At least one occupant is required.", field="occupants_count")
        opening = parse_amount(initial_balance if initial_balance is not None else 0, field="initial_balance")

        unit = await self.get_unit(unit_id)
        if unit.landlord_id != requester.subject_id:
            logger.warning(
                "Rejected lease creation: user_id=%s does not own unit_id=%s",
                requester.subject_id,
                unit.id,
            )
            raise AuthorizationError("You can only lease your own properties.")

        renter = await self.session.get(User, self._as_id(renter_id, "Renter not found."))
        if renter is None or UserRole(renter.role) != UserRole.RENTER:
            raise NotFoundError("Renter not found.")

        await self.session.execute(
            update(Lease)
            .where(Lease.unit_id == unit.id, Lease.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        lease = Lease(
            unit_id=unit.id,
            renter_id=renter.id,
            start_date=start_date,
            occupants_count=occupants,
            monthly_rent=rent,
            due_day=due,
            opening_balance=opening,
            current_balance=opening,
            is_active=True,
        )
        self.session.add(lease)
        await self._commit("lease")
        await self.session.refresh(lease)
        logger.info(
            "Created lease: lease_id=%s unit_id=%s renter_id=%s monthly_rent=%s balance=%s",
            lease.id,
            unit.id,
            renter.id,
            rent,
            opening,
        )
        return lease

    async def get_unit(self, unit_id: Any) -> RentalUnit:
        """Get a unit by id.

        Raises:
            NotFoundError: Unknown unit
        """
        unit = await self.session.get(RentalUnit, self._as_id(unit_id, "Property not found."))
        if unit is None:
            raise NotFoundError("Property not found.")
        return unit

    async def get_active_lease_for_unit(self, unit_id: int) -> Optional[Lease]:
        """The unit's active lease, or None when vacant."""
        stmt = (
            select(Lease)
            .where(Lease.unit_id == unit_id, Lease.is_active.is_(True))
            .order_by(Lease.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_units_for_landlord(self, landlord_id: int) -> List[UnitWithLease]:
        """A landlord's units, newest first, each with its active lease."""
        stmt = (
            select(RentalUnit)
            .where(RentalUnit.landlord_id == landlord_id)
            .order_by(RentalUnit.created_at.desc(), RentalUnit.id.desc())
        )
        units = (await self.session.execute(stmt)).scalars().all()

        listings = []
        for unit in units:
            lease = await self.get_active_lease_for_unit(unit.id)
            renter = await self.session.get(User, lease.renter_id) if lease else None
            listings.append(UnitWithLease(unit=unit, active_lease=lease, renter=renter))
        return listings

    async def list_leases_for_landlord(self, landlord_id: int) -> List[LeaseListing]:
        """Every lease on the landlord's units, newest first."""
        stmt = (
            select(Lease, RentalUnit, User)
            .join(RentalUnit, RentalUnit.id == Lease.unit_id)
            .outerjoin(User, User.id == Lease.renter_id)
            .where(RentalUnit.landlord_id == landlord_id)
            .order_by(Lease.created_at.desc(), Lease.id.desc())
        )
        rows = (await self.session.execute(stmt)).all()
        return [LeaseListing(lease=lease, unit=unit, renter=renter) for lease, unit, renter in rows]

    async def list_leases_for_renter(self, renter_id: int) -> List[Lease]:
        """A renter's leases, newest first."""
        stmt = (
            select(Lease)
            .where(Lease.renter_id == renter_id)
            .order_by(Lease.created_at.desc(), Lease.id.desc())
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def get_renter_lease(self, renter_id: int) -> RenterLease:
        """The renter's most recently created lease and its ledger.

        Raises:
            NotFoundError: Renter has no lease
        """
        leases = await self.list_leases_for_renter(renter_id)
        if not leases:
            raise NotFoundError("No lease found for this renter.")
        lease = leases[0]
        unit = await self.get_unit(lease.unit_id)
        entries = await self.store.list_for_lease(lease.id)
        return RenterLease(lease=lease, unit=unit, entries=entries)

    @staticmethod
    def _as_id(value: Any, message: str) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise NotFoundError(message) from None

    async def _commit(self, what: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to save %s: %s", what, e, exc_info=True)
            raise StorageError(f"Could not save {what}.") from e


__all__ = [
    "LeaseRegistry",
    "UnitWithLease",
    "LeaseListing",
    "RenterLease",
]
