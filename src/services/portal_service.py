"""Landlord and renter portal presenters.

Presenters read a lease and its ledger, issue commands through the balance
engine and turn the results into display-ready views. Errors from the
engine or the registry are caught here and returned as declined
PortalResults whose status is the reason; nothing is re-thrown to the caller.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.lease import Lease
from src.models.ledger_entry import EntryKind, LedgerEntry
from src.models.user import User, UserRole
from src.services.auth_service import IdentityContext
from src.services.balance_service import LeaseBalanceEngine, LedgerSnapshot, is_overdue, is_paid
from src.services.config import get_settings
from src.services.errors import AppError, NotFoundError, StorageError
from src.services.locale_service import (
    contract_end_date,
    due_label,
    format_amount,
    format_short_date,
    format_signed_amount,
    next_due_date,
)
from src.services.registry_service import LeaseRegistry

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "Online payment"
CHARGE_METHOD = "Due amount"
NO_TENANT = "No tenant yet"

# kind -> (label, sign, dot class)
LEDGER_STYLES = {
    EntryKind.CHARGE: ("Rent issued", "+", "dot-yellow"),
    EntryKind.CREDIT: ("Credited on", "-", "dot-purple"),
    EntryKind.PAYMENT: ("Paid on", "-", "dot-green"),
}

LANDLORD_NOTE = "Posted by landlord"
PAYMENT_NOTES = {
    UserRole.RENTER: "Paid by you",
    UserRole.LANDLORD: "Paid by renter",
}

CARD_NUMBER_RE = re.compile(r"^\d{16}$")
EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/(\d{2})$")
CVV_RE = re.compile(r"^\d{3,4}$")


@dataclass
class LedgerRow:
    """One ledger entry as a portal shows it."""

    entry_id: int
    kind: str
    label: str
    date: str
    amount: str
    note: str
    dot: str
    method: str


def render_entry(entry: LedgerEntry, viewer: UserRole) -> LedgerRow:
    """Render a single ledger entry for a renter or landlord view.

    Charges show the due-amount label; other rows show the method stored on
    the entry, or the default online label when none was recorded.

    Args:
        entry: Stored ledger entry
        viewer: Role of whoever is looking

    Returns:
        LedgerRow with label, signed amount, note, dot class and method
    """
    kind = EntryKind(entry.kind)
    label, sign, dot = LEDGER_STYLES[kind]
    note = PAYMENT_NOTES[viewer] if kind == EntryKind.PAYMENT else LANDLORD_NOTE
    recorded = entry.recorded_at.date() if entry.recorded_at else None
    return LedgerRow(
        entry_id=entry.id,
        kind=kind.value,
        label=label,
        date=format_short_date(recorded),
        amount=format_signed_amount(entry.amount, sign),
        note=note,
        dot=dot,
        method=CHARGE_METHOD if kind == EntryKind.CHARGE else (entry.method or DEFAULT_METHOD),
    )


def render_ledger(entries: List[LedgerEntry], viewer: UserRole) -> List[LedgerRow]:
    """Render entries in the order given (newest first from the store)."""
    return [render_entry(entry, viewer) for entry in entries]


def tenant_label(renter: Optional[User], lease: Optional[Lease]) -> str:
    """Name, then email, then id, then 'No tenant yet'."""
    if renter is not None and renter.full_name:
        return renter.full_name
    if renter is not None and renter.email:
        return renter.email
    if lease is not None and lease.renter_id:
        return str(lease.renter_id)
    return NO_TENANT


def suggested_payment(balance: Decimal) -> Decimal:
    """What the pay dialog pre-fills: the balance when owed, else nothing."""
    return balance if balance > 0 else Decimal("0")


def payment_status_message(amount: Decimal, balance: Decimal) -> str:
    """Status line shown after a successful payment."""
    if balance < 0:
        note = f"You now have a credit of {format_amount(abs(balance))}."
    else:
        note = f"New balance: {format_amount(balance)}."
    return f"Payment of {format_amount(amount)} recorded. {note}"


@dataclass
class CardDetails:
    """Card typed into the renter pay dialog.

    Only validated and masked; never stored or charged.
    """

    card_number: str
    expiry: str
    cvv: str

    def validate(self, today: date | None = None) -> List[str]:
        """Return every problem with the card; empty when it looks usable."""
        today = today or date.today()
        errors = []
        if not CARD_NUMBER_RE.match(re.sub(r"\s+", "", self.card_number or "")):
            errors.append("Card number should be 16 digits.")

        match = EXPIRY_RE.match(self.expiry or "")
        if not match:
            errors.append("Use MM/YY for expiry.")
        else:
            month, year = int(match.group(1)), 2000 + int(match.group(2))
            if (year, month) < (today.year, today.month):
                errors.append("Card appears to be expired.")

        if not CVV_RE.match(self.cvv or ""):
            errors.append("CVV should be 3 or 4 numbers.")
        return errors

    @property
    def masked(self) -> str:
        digits = re.sub(r"\s+", "", self.card_number or "")
        return f"Card ending in {digits[-4:]} (exp {self.expiry})"


@dataclass
class PortalResult:
    """Outcome of a portal command.

    ok is False when the command was declined; status then carries the
    reason and the previously displayed state still stands.
    """

    ok: bool
    status: str
    errors: List[str] = field(default_factory=list)
    snapshot: Optional[LedgerSnapshot] = None
    ledger: List[LedgerRow] = field(default_factory=list)

    @classmethod
    def declined(cls, error: AppError) -> "PortalResult":
        if isinstance(error, StorageError):
            logger.error("Portal command failed in storage: %s", error.message)
        return cls(ok=False, status=error.message)


@dataclass
class RenterDashboard:
    lease_id: int
    unit_title: str
    unit_address: str
    balance: Decimal
    monthly_rent: Decimal
    balance_display: str
    monthly_rent_display: str
    paid: bool
    overdue: bool
    status_pill: str
    overdue_note: Optional[str]
    due_label: str
    next_due: str
    contract_start: str
    contract_end: str
    contract_length: str
    suggested_payment: Decimal
    ledger: List[LedgerRow]


@dataclass
class UnitCard:
    unit_id: int
    title: str
    address: str
    stage: str
    image_url: Optional[str]
    occupancy: str
    tenant: str
    lease_id: Optional[int]
    payment_plan: str
    next_due: str
    contract: str
    contract_end: str
    monthly_rent: Decimal
    monthly_rent_display: str
    balance: Decimal
    balance_display: str
    paid: bool
    status_pill: str
    monthly_charge_label: str


@dataclass
class LandlordDashboard:
    units: List[UnitCard]
    total: int
    occupied: int
    paid: int


def _contract_length() -> str:
    return f"{get_settings().contract_length_months} months"


class RenterPortal:
    """Renter dashboard and payment commands for one identity."""

    def __init__(self, session: AsyncSession, identity: IdentityContext):
        self.identity = identity
        self.registry = LeaseRegistry(session)
        self.engine = LeaseBalanceEngine(session)

    async def dashboard(self, today: date | None = None) -> RenterDashboard:
        """Build the renter dashboard.

        Raises:
            NotFoundError: Renter has no lease
        """
        today = today or date.today()
        found = await self.registry.get_renter_lease(self.identity.subject_id)
        lease = found.lease
        balance = Decimal(lease.current_balance)
        rent = Decimal(lease.monthly_rent)
        paid = is_paid(balance, rent)
        overdue = is_overdue(balance, rent)
        return RenterDashboard(
            lease_id=lease.id,
            unit_title=found.unit.title,
            unit_address=found.unit.address,
            balance=balance,
            monthly_rent=rent,
            balance_display=format_amount(balance),
            monthly_rent_display=format_amount(rent),
            paid=paid,
            overdue=overdue,
            status_pill="Payment received" if paid else "Payment pending",
            overdue_note="Balance overdue" if overdue else None,
            due_label=due_label(lease.due_day),
            next_due=format_short_date(next_due_date(lease.due_day, today)),
            contract_start=format_short_date(lease.start_date),
            contract_end=format_short_date(contract_end_date(lease.start_date or today)),
            contract_length=_contract_length(),
            suggested_payment=suggested_payment(balance),
            ledger=render_ledger(found.entries, UserRole.RENTER),
        )

    async def pay(
        self,
        amount: Any,
        card: CardDetails | None = None,
        saved_method: str | None = None,
        today: date | None = None,
    ) -> PortalResult:
        """Pay against the renter's current lease.

        A new card is validated first; any problem declines the payment
        before it reaches the engine.
        """
        method = saved_method or DEFAULT_METHOD
        if card is not None:
            errors = card.validate(today)
            if errors:
                logger.info("Declined payment for user_id=%s: card invalid", self.identity.subject_id)
                return PortalResult(ok=False, status="Fix the card details before paying.", errors=errors)
            method = card.masked

        try:
            found = await self.registry.get_renter_lease(self.identity.subject_id)
        except NotFoundError:
            return PortalResult(ok=False, status="No lease to pay yet.")

        try:
            snapshot = await self.engine.pay(found.lease.id, amount, self.identity, method=method)
        except AppError as e:
            return PortalResult.declined(e)

        balance = Decimal(snapshot.lease.current_balance)
        return PortalResult(
            ok=True,
            status=payment_status_message(Decimal(snapshot.entry.amount), balance),
            snapshot=snapshot,
            ledger=render_ledger(snapshot.entries, UserRole.RENTER),
        )


class LandlordPortal:
    """Landlord dashboard and balance commands for one identity."""

    def __init__(self, session: AsyncSession, identity: IdentityContext):
        self.identity = identity
        self.registry = LeaseRegistry(session)
        self.engine = LeaseBalanceEngine(session)

    async def dashboard(self, today: date | None = None) -> LandlordDashboard:
        today = today or date.today()
        listings = await self.registry.list_units_for_landlord(self.identity.subject_id)

        cards = []
        for listing in listings:
            lease = listing.active_lease
            balance = Decimal(lease.current_balance) if lease else Decimal("0")
            rent = Decimal(lease.monthly_rent) if lease else Decimal("0")
            due_day = lease.due_day if lease else 1
            paid = is_paid(balance, rent) if lease else False
            start = lease.start_date if lease else None
            cards.append(
                UnitCard(
                    unit_id=listing.unit.id,
                    title=listing.unit.title,
                    address=listing.unit.address,
                    stage=listing.unit.stage,
                    image_url=listing.unit.image_url,
                    occupancy="Occupied" if lease else "Vacant",
                    tenant=tenant_label(listing.renter, lease),
                    lease_id=lease.id if lease else None,
                    payment_plan=due_label(due_day),
                    next_due=format_short_date(next_due_date(due_day, today)),
                    contract=f"Started {format_short_date(start)}" if start else "Not set",
                    contract_end=format_short_date(contract_end_date(start or today)),
                    monthly_rent=rent,
                    monthly_rent_display=format_amount(rent),
                    balance=balance,
                    balance_display=format_amount(balance),
                    paid=paid,
                    status_pill="Paid" if paid else "Not paid",
                    monthly_charge_label=f"Add monthly charge ({format_amount(rent)})",
                )
            )

        return LandlordDashboard(
            units=cards,
            total=len(cards),
            occupied=sum(1 for card in cards if card.lease_id is not None),
            paid=sum(1 for card in cards if card.paid),
        )

    async def adjust_balance(self, lease_id: Any, amount: Any) -> PortalResult:
        """Positive amounts add a charge, negative amounts a credit."""
        try:
            snapshot = await self.engine.charge(lease_id, amount, self.identity)
        except AppError as e:
            return PortalResult.declined(e)
        return self._applied(snapshot)

    async def post_monthly_charge(self, lease_id: Any) -> PortalResult:
        try:
            snapshot = await self.engine.post_monthly_charge(lease_id, self.identity)
        except AppError as e:
            return PortalResult.declined(e)
        return self._applied(snapshot)

    def _applied(self, snapshot: LedgerSnapshot) -> PortalResult:
        balance = format_amount(snapshot.lease.current_balance)
        return PortalResult(
            ok=True,
            status=f"Balance updated. New balance: {balance}.",
            snapshot=snapshot,
            ledger=render_ledger(snapshot.entries, UserRole.LANDLORD),
        )


__all__ = [
    "CardDetails",
    "LandlordDashboard",
    "LandlordPortal",
    "LedgerRow",
    "PortalResult",
    "RenterDashboard",
    "RenterPortal",
    "UnitCard",
    "payment_status_message",
    "render_entry",
    "render_ledger",
    "suggested_payment",
    "tenant_label",
]
