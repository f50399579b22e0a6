"""Unit tests for the landlord and renter portal presenters."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.models.ledger_entry import LedgerEntry
from src.models.user import User, UserRole
from src.services.portal_service import (
    CardDetails,
    LandlordPortal,
    RenterPortal,
    payment_status_message,
    render_entry,
    suggested_payment,
    tenant_label,
)
from src.services.registry_service import LeaseRegistry

TODAY = date(2026, 10, 16)


def _entry(kind: str, amount: str, method: str | None = None) -> LedgerEntry:
    return LedgerEntry(
        id=1,
        lease_id=1,
        kind=kind,
        amount=Decimal(amount),
        method=method,
        recorded_at=datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc),
    )


@pytest.mark.unit
class TestLedgerRendering:
    """Test entry labels, signs, notes and dots."""

    def test_charge(self):
        row = render_entry(_entry("charge", "1200"), UserRole.RENTER)

        assert row.label == "Rent issued"
        assert row.amount == "+$1,200"
        assert row.note == "Posted by landlord"
        assert row.dot == "dot-yellow"
        assert row.method == "Due amount"
        assert row.date == "3/5/2026"

    def test_credit(self):
        row = render_entry(_entry("credit", "-50"), UserRole.RENTER)

        assert row.label == "Credited on"
        assert row.amount == "-$50"
        assert row.note == "Posted by landlord"
        assert row.dot == "dot-purple"
        assert row.method == "Online payment"

    def test_payment_for_renter_and_landlord(self):
        card_payment = _entry("payment", "99.5", method="Card ending in 4242 (exp 12/30)")
        renter_row = render_entry(card_payment, UserRole.RENTER)
        landlord_row = render_entry(card_payment, UserRole.LANDLORD)

        assert renter_row.label == "Paid on"
        assert renter_row.amount == "-$99.50"
        assert renter_row.dot == "dot-green"
        assert renter_row.note == "Paid by you"
        assert renter_row.method == "Card ending in 4242 (exp 12/30)"
        assert landlord_row.note == "Paid by renter"
        assert landlord_row.method == "Card ending in 4242 (exp 12/30)"

    def test_payment_without_stored_method(self):
        row = render_entry(_entry("payment", "10"), UserRole.RENTER)

        assert row.method == "Online payment"


@pytest.mark.unit
class TestHelpers:
    """Test small display helpers."""

    async def test_tenant_label_fallbacks(self, lease):
        assert tenant_label(User(email="a@b.c", full_name="Ann"), lease) == "Ann"
        assert tenant_label(User(email="a@b.c"), lease) == "a@b.c"
        assert tenant_label(None, lease) == str(lease.renter_id)
        assert tenant_label(None, None) == "No tenant yet"

    def test_suggested_payment(self):
        assert suggested_payment(Decimal("1200")) == Decimal("1200")
        assert suggested_payment(Decimal("-100")) == Decimal("0")

    def test_payment_status_message(self):
        assert payment_status_message(Decimal("1200"), Decimal("0")) == (
            "Payment of $1,200 recorded. New balance: $0."
        )
        assert payment_status_message(Decimal("1300"), Decimal("-100")) == (
            "Payment of $1,300 recorded. You now have a credit of $100."
        )


@pytest.mark.unit
class TestCardDetails:
    """Test card validation in the pay dialog."""

    def test_valid_card(self):
        card = CardDetails("4242 4242 4242 4242", "12/30", "123")

        assert card.validate(TODAY) == []
        assert card.masked == "Card ending in 4242 (exp 12/30)"

    def test_collects_every_error(self):
        errors = CardDetails("4242", "13/30", "12").validate(TODAY)

        assert errors == [
            "Card number should be 16 digits.",
            "Use MM/YY for expiry.",
            "CVV should be 3 or 4 numbers.",
        ]

    def test_expired(self):
        assert CardDetails("4242424242424242", "09/26", "1234").validate(TODAY) == [
            "Card appears to be expired."
        ]

    def test_current_month_not_expired(self):
        assert CardDetails("4242424242424242", "10/26", "123").validate(TODAY) == []


@pytest.mark.unit
class TestRenterPortal:
    """Test the renter dashboard and pay command."""

    async def test_dashboard(self, session, lease, renter_identity):
        view = await RenterPortal(session, renter_identity).dashboard(today=TODAY)

        assert view.lease_id == lease.id
        assert view.unit_title == "Maple Flat"
        assert view.balance_display == "$1,200"
        assert view.paid is True
        assert view.overdue is False
        assert view.status_pill == "Payment received"
        assert view.overdue_note is None
        assert view.due_label == "1st of each month"
        assert view.next_due == "11/1/2026"
        assert view.contract_start == "1/1/2026"
        assert view.contract_end == "7/1/2026"
        assert view.contract_length == "6 months"
        assert view.suggested_payment == Decimal("1200")
        assert view.ledger == []

    async def test_overdue_dashboard(self, session, lease, landlord_identity, renter_identity):
        await LandlordPortal(session, landlord_identity).adjust_balance(lease.id, 1)

        view = await RenterPortal(session, renter_identity).dashboard(today=TODAY)

        assert view.status_pill == "Payment pending"
        assert view.overdue_note == "Balance overdue"
        assert view.ledger[0].label == "Rent issued"

    async def test_pay_success(self, session, lease, renter_identity):
        result = await RenterPortal(session, renter_identity).pay(1300)

        assert result.ok is True
        assert result.status == "Payment of $1,300 recorded. You now have a credit of $100."
        assert result.snapshot.lease.current_balance == Decimal("-100")
        assert result.ledger[0].method == "Online payment"

    async def test_pay_with_card_uses_masked_method(self, session, lease, renter_identity):
        card = CardDetails("4242424242424242", "12/30", "123")

        result = await RenterPortal(session, renter_identity).pay(100, card=card, today=TODAY)

        assert result.ok is True
        assert result.ledger[0].method == "Card ending in 4242 (exp 12/30)"

    async def test_earlier_payments_keep_their_method(self, session, lease, renter_identity):
        portal = RenterPortal(session, renter_identity)
        card = CardDetails("4242424242424242", "12/30", "123")

        await portal.pay(100, card=card, today=TODAY)
        result = await portal.pay(50, saved_method="Bank transfer")

        assert [row.method for row in result.ledger] == [
            "Bank transfer",
            "Card ending in 4242 (exp 12/30)",
        ]

    async def test_huge_amount_declined(self, session, lease, renter_identity):
        result = await RenterPortal(session, renter_identity).pay(1e30)
        await session.refresh(lease)

        assert result.ok is False
        assert result.status == "Amount is too large."
        assert lease.current_balance == Decimal("1200")

    async def test_bad_card_declines_before_paying(self, session, lease, renter_identity):
        card = CardDetails("1", "12/30", "123")

        result = await RenterPortal(session, renter_identity).pay(100, card=card, today=TODAY)
        await session.refresh(lease)

        assert result.ok is False
        assert result.status == "Fix the card details before paying."
        assert result.errors == ["Card number should be 16 digits."]
        assert lease.current_balance == Decimal("1200")

    async def test_invalid_amount_declined(self, session, lease, renter_identity):
        result = await RenterPortal(session, renter_identity).pay(0)

        assert result.ok is False
        assert result.status == "Payment amount must be positive."
        assert result.snapshot is None

    async def test_no_lease(self, session, other_renter_identity):
        result = await RenterPortal(session, other_renter_identity).pay(100)

        assert result.ok is False
        assert result.status == "No lease to pay yet."


@pytest.mark.unit
class TestLandlordPortal:
    """Test the landlord dashboard and balance commands."""

    async def test_dashboard_cards_and_stats(self, session, landlord_identity, unit, lease, renter):
        await LeaseRegistry(session).create_unit(landlord_identity, "Studio", "2 Low St")

        view = await LandlordPortal(session, landlord_identity).dashboard(today=TODAY)

        assert (view.total, view.occupied, view.paid) == (2, 1, 1)
        vacant, occupied = view.units
        assert vacant.occupancy == "Vacant"
        assert vacant.tenant == "No tenant yet"
        assert vacant.paid is False
        assert vacant.status_pill == "Not paid"
        assert vacant.contract == "Not set"
        assert occupied.occupancy == "Occupied"
        assert occupied.tenant == "Rita Renter"
        assert occupied.payment_plan == "1st of each month"
        assert occupied.contract == "Started 1/1/2026"
        assert occupied.status_pill == "Paid"
        assert occupied.monthly_charge_label == "Add monthly charge ($1,200)"

    async def test_paid_tile_uses_shared_rule(self, session, landlord_identity, lease):
        portal = LandlordPortal(session, landlord_identity)
        await portal.post_monthly_charge(lease.id)

        view = await portal.dashboard(today=TODAY)

        assert view.paid == 0
        assert view.units[0].balance_display == "$2,400"

    async def test_adjust_balance(self, session, landlord_identity, lease):
        result = await LandlordPortal(session, landlord_identity).adjust_balance(lease.id, -200)

        assert result.ok is True
        assert result.status == "Balance updated. New balance: $1,000."
        assert result.ledger[0].label == "Credited on"

    async def test_declined_for_other_landlord(self, session, other_landlord_identity, lease):
        result = await LandlordPortal(session, other_landlord_identity).adjust_balance(lease.id, 50)

        assert result.ok is False
        assert result.status == "You can only update your own leases."

    async def test_declined_for_non_number(self, session, landlord_identity, lease):
        result = await LandlordPortal(session, landlord_identity).adjust_balance(lease.id, "ten")

        assert result.ok is False
        assert result.status == "Balance must be a number."

    async def test_declined_for_huge_amount(self, session, landlord_identity, lease):
        result = await LandlordPortal(session, landlord_identity).adjust_balance(lease.id, 1e30)

        assert result.ok is False
        assert result.status == "Balance is too large."

    async def test_monthly_charge_unknown_lease(self, session, landlord_identity):
        result = await LandlordPortal(session, landlord_identity).post_monthly_charge(12345)

        assert result.ok is False
        assert result.status == "Lease not found."
