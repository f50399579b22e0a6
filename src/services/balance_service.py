"""Lease balance engine: applies payments, charges and credits to a lease.

Balance convention: positive = renter owes, negative = renter holds a credit.

Effect of each ledger entry kind on the running balance:
- payment: balance - amount   (renter only, amount > 0)
- charge:  balance + amount   (owning landlord, amount > 0)
- credit:  balance + amount   (owning landlord, amount < 0)

Every command validates its input, resolves the lease and checks the
requester before writing anything. The balance update and the entry insert
are then committed together, or rolled back together.

Paid status is defined here once and imported by both portals:
a lease counts as paid for the current period while balance <= monthly rent.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, List, NamedTuple, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.lease import Lease
from src.models.ledger_entry import EntryKind, LedgerEntry
from src.models.rental_unit import RentalUnit
from src.services.auth_service import IdentityContext
from src.services.errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from src.services.ledger_service import LedgerEntryStore

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Numeric(12, 2) holds ten integer digits
MAX_AMOUNT = Decimal("1e10")


def is_paid(balance: Decimal | float | int, monthly_rent: Decimal | float | int | None) -> bool:
    """Whether a lease counts as paid for the current period.

    At most one month's rent outstanding counts as paid; a credit (negative
    balance) is always paid.
    """
    return Decimal(str(balance)) <= Decimal(str(monthly_rent or 0))


def is_overdue(balance: Decimal | float | int, monthly_rent: Decimal | float | int | None) -> bool:
    """More than one month's rent outstanding."""
    return not is_paid(balance, monthly_rent)


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """Coerce a caller-supplied amount to a cent-rounded Decimal.

    Args:
        value: int, float, Decimal or numeric string
        field: Field name reported in the validation error

    Returns:
        Decimal rounded to cents

    Raises:
        ValidationError: Missing, non-numeric, non-finite or out-of-range value
    """
    label = field.replace("_", " ").capitalize()
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{label} must be a number.", field=field)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"{label} must be a number.", field=field) from e
    if not amount.is_finite():
        raise ValidationError(f"{label} must be a finite number.", field=field)
    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(f"{label} is too large.", field=field)
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValidationError(f"{label} is too large.", field=field) from e


def check_balance_range(balance: Decimal, field: str = "amount") -> Decimal:
    """Reject a balance the money columns cannot hold exactly."""
    if abs(balance) >= MAX_AMOUNT:
        raise ValidationError("Resulting balance is out of range.", field=field)
    return balance


class LedgerSnapshot(NamedTuple):
    """Lease state after a command or a ledger read."""

    lease: Lease
    entries: List[LedgerEntry]  # newest first
    entry: Optional[LedgerEntry] = None  # entry written by the command, if any

    @property
    def paid(self) -> bool:
        return is_paid(self.lease.current_balance, self.lease.monthly_rent)


class LeaseBalanceEngine:
    """Apply balance commands to leases and keep the ledger in step."""

    def __init__(self, session: AsyncSession):
        """Initialize with database session.

        Args:
            session: AsyncSession for database operations
        """
        self.session = session
        self.store = LedgerEntryStore(session)

    async def pay(
        self,
        lease_id: int,
        amount: Any,
        requester: IdentityContext,
        method: Optional[str] = None,
    ) -> LedgerSnapshot:
        """Record a renter payment.

        Overpaying is allowed and leaves a negative balance (credit).
        Identical payments submitted twice are recorded twice.

        Args:
            lease_id: Lease to pay against
            amount: Payment amount, must be > 0
            requester: Identity issuing the command; must be the lease's renter
            method: Payment method label kept on the entry

        Returns:
            LedgerSnapshot with the payment entry and all entries newest-first

        Raises:
            ValidationError: Amount not a finite positive number, or the
                resulting balance is out of range
            NotFoundError: Unknown lease
            AuthorizationError: Requester is not this lease's renter
            StorageError: Database write failed (nothing was kept)
        """
        value = parse_amount(amount)
        if value <= 0:
            logger.warning("Rejected payment: lease_id=%s amount=%s", lease_id, value)
            raise ValidationError("Payment amount must be positive.", field="amount")

        lease = await self._load_lease(lease_id)
        if not requester.is_renter or lease.renter_id != requester.subject_id:
            logger.warning(
                "Rejected payment: user_id=%s is not renter of lease_id=%s",
                requester.subject_id,
                lease_id,
            )
            raise AuthorizationError("You can only pay your own lease.")

        return await self._apply(
            lease, EntryKind.PAYMENT, value, delta=-value, requester=requester, method=method
        )

    async def charge(self, lease_id: int, amount: Any, requester: IdentityContext) -> LedgerSnapshot:
        """Adjust a lease balance as its landlord.

        Positive amounts are recorded as charges, negative amounts as credits.

        Args:
            lease_id: Lease to adjust
            amount: Signed, non-zero adjustment
            requester: Identity issuing the command; must own the lease's unit

        Raises:
            ValidationError: Amount not a finite non-zero number, or the
                resulting balance is out of range
            NotFoundError: Unknown lease
            AuthorizationError: Requester does not own the unit
            StorageError: Database write failed (nothing was kept)
        """
        value = parse_amount(amount, field="balance")
        if value == 0:
            logger.warning("Rejected zero adjustment: lease_id=%s", lease_id)
            raise ValidationError("Balance change must not be zero.", field="balance")

        lease = await self._load_lease(lease_id)
        await self._check_landlord(lease, requester, "You can only update your own leases.")

        kind = EntryKind.CHARGE if value > 0 else EntryKind.CREDIT
        return await self._apply(lease, kind, value, delta=value, requester=requester, field="balance")

    async def credit(self, lease_id: int, amount: Any, requester: IdentityContext) -> LedgerSnapshot:
        """Give the renter a discount or correction of `amount` (> 0)."""
        value = parse_amount(amount)
        if value <= 0:
            raise ValidationError("Credit amount must be positive.", field="amount")
        return await self.charge(lease_id, -value, requester)

    async def post_monthly_charge(self, lease_id: int, requester: IdentityContext) -> LedgerSnapshot:
        """Post one month's rent as a charge."""
        lease = await self._load_lease(lease_id)
        return await self.charge(lease_id, lease.monthly_rent, requester)

    async def get_ledger(self, lease_id: int, requester: IdentityContext) -> LedgerSnapshot:
        """Read a lease and its entries newest-first.

        Raises:
            NotFoundError: Unknown lease
            AuthorizationError: Requester is neither the owning landlord nor the renter
        """
        lease = await self._load_lease(lease_id)
        if not (requester.is_renter and lease.renter_id == requester.subject_id):
            await self._check_landlord(lease, requester, "You can only view your own leases.")
        entries = await self.store.list_for_lease(lease.id)
        return LedgerSnapshot(lease=lease, entries=entries)

    async def _load_lease(self, lease_id: Any) -> Lease:
        try:
            key = int(lease_id)
        except (TypeError, ValueError):
            raise NotFoundError("Lease not found.") from None
        lease = await self.session.get(Lease, key)
        if lease is None:
            raise NotFoundError("Lease not found.")
        return lease

    async def _check_landlord(self, lease: Lease, requester: IdentityContext, message: str) -> None:
        stmt = select(RentalUnit.landlord_id).where(RentalUnit.id == lease.unit_id)
        owner_id = (await self.session.execute(stmt)).scalar_one_or_none()
        if not requester.is_landlord or owner_id is None or owner_id != requester.subject_id:
            logger.warning(
                "Rejected landlord command: user_id=%s lease_id=%s owner_id=%s",
                requester.subject_id,
                lease.id,
                owner_id,
            )
            raise AuthorizationError(message)

    async def _apply(
        self,
        lease: Lease,
        kind: EntryKind,
        amount: Decimal,
        delta: Decimal,
        requester: IdentityContext,
        method: Optional[str] = None,
        field: str = "amount",
    ) -> LedgerSnapshot:
        """Update the cached balance and append the entry in one transaction."""
        lease_id = lease.id
        try:
            check_balance_range(Decimal(lease.current_balance) + delta, field=field)
        except ValidationError:
            logger.warning(
                "Rejected %s: lease_id=%s balance=%s delta=%s out of range",
                kind.value,
                lease_id,
                lease.current_balance,
                delta,
            )
            raise
        try:
            await self.session.execute(
                update(Lease)
                .where(Lease.id == lease_id)
                .values(current_balance=Lease.current_balance + delta)
                .execution_options(synchronize_session=False)
            )
            entry = await self.store.append(lease_id, kind, amount, method=method)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to apply %s to lease_id=%s: %s", kind.value, lease_id, e, exc_info=True
            )
            raise StorageError(f"Could not record {kind.value}.") from e

        await self.session.refresh(lease)
        entries = await self.store.list_for_lease(lease.id)
        logger.info(
            "Applied %s: lease_id=%s user_id=%s amount=%s balance=%s entry_id=%s",
            kind.value,
            lease.id,
            requester.subject_id,
            amount,
            lease.current_balance,
            entry.id,
        )
        return LedgerSnapshot(lease=lease, entries=entries, entry=entry)


__all__ = [
    "LeaseBalanceEngine",
    "LedgerSnapshot",
    "MAX_AMOUNT",
    "check_balance_range",
    "is_paid",
    "is_overdue",
    "parse_amount",
]
