"""Rentals API endpoints: units, leases, ledger, payments and portal views."""

import logging
import time
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.lease import Lease
from src.models.ledger_entry import LedgerEntry
from src.models.rental_unit import RentalUnit
from src.models.user import User, UserRole
from src.services import get_async_session
from src.services.auth_service import IdentityContext, get_identity, require_role
from src.services.balance_service import LeaseBalanceEngine, LedgerSnapshot, is_overdue, is_paid
from src.services.portal_service import (
    CardDetails,
    LandlordPortal,
    LedgerRow,
    RenterPortal,
)
from src.services.registry_service import LeaseRegistry

logger = logging.getLogger(__name__)

require_landlord = require_role(UserRole.LANDLORD)
require_renter = require_role(UserRole.RENTER)


def _log_debug(endpoint: str, start_time: float, identity: IdentityContext, **kwargs: Any) -> None:
    """Log API request with timing and identity at DEBUG level.

    Args:
        endpoint: Endpoint name (e.g., 'payments', 'ledger')
        start_time: Request start time from time.time()
        identity: Requesting identity
        **kwargs: Additional fields to log (lease_id, count, ...)
    """
    duration_ms = int((time.time() - start_time) * 1000)
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(
        "rentals.%s: user_id=%s role=%s %sduration_ms=%d",
        endpoint,
        identity.subject_id,
        identity.role.value,
        f"{extra} " if extra else "",
        duration_ms,
    )


router = APIRouter(prefix="/api/rentals", tags=["rentals"])


# Request schemas (camelCase or snake_case keys both accepted)
class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateUnitRequest(RequestModel):
    title: str | None = None
    address: str | None = None
    image_url: str | None = None
    stage: str | None = None
    monthly_rent: Any = 0


class CreateLeaseRequest(RequestModel):
    property_id: Any = None
    renter_id: Any = None
    start_date: date | None = None
    occupants_count: Any = 1
    monthly_rent: Any = None
    due_day: Any = None
    current_balance: Any = 0


class BalanceChangeRequest(RequestModel):
    balance: Any = None


class PaymentRequest(RequestModel):
    lease_id: Any = None
    amount: Any = None


class CardRequest(RequestModel):
    card_number: str = ""
    expiry: str = ""
    cvv: str = ""


class PortalPaymentRequest(RequestModel):
    amount: Any = None
    card: CardRequest | None = None
    saved_method: str | None = None


# Response schemas
class LeaseResponse(BaseModel):
    """Lease with derived paid/overdue flags."""

    id: int
    property_id: int
    renter_id: int
    start_date: date | None = None
    occupants_count: int
    monthly_rent: float
    due_day: int
    opening_balance: float
    current_balance: float
    is_active: bool
    paid: bool
    overdue: bool
    created_at: datetime

    # Landlord listings only
    property_title: str | None = None
    property_address: str | None = None
    renter_email: str | None = None
    renter_name: str | None = None


class LedgerEntryResponse(BaseModel):
    id: int
    lease_id: int
    kind: str
    amount: float
    method: str | None = None
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnitResponse(BaseModel):
    id: int
    landlord_id: int
    title: str
    address: str
    image_url: str | None = None
    stage: str
    monthly_rent: float
    created_at: datetime
    active_lease: LeaseResponse | None = None

    model_config = ConfigDict(from_attributes=True)


class PortalPaymentResponse(BaseModel):
    ok: bool
    status: str
    errors: list[str] = []
    lease: LeaseResponse | None = None
    ledger: list[LedgerRow] = []


def _lease_payload(
    lease: Lease,
    unit: RentalUnit | None = None,
    renter: User | None = None,
) -> LeaseResponse:
    return LeaseResponse(
        id=lease.id,
        property_id=lease.unit_id,
        renter_id=lease.renter_id,
        start_date=lease.start_date,
        occupants_count=lease.occupants_count,
        monthly_rent=lease.monthly_rent,
        due_day=lease.due_day,
        opening_balance=lease.opening_balance,
        current_balance=lease.current_balance,
        is_active=lease.is_active,
        paid=is_paid(lease.current_balance, lease.monthly_rent),
        overdue=is_overdue(lease.current_balance, lease.monthly_rent),
        created_at=lease.created_at,
        property_title=unit.title if unit else None,
        property_address=unit.address if unit else None,
        renter_email=renter.email if renter else None,
        renter_name=renter.full_name if renter else None,
    )


def _entries_payload(entries: list[LedgerEntry]) -> list[LedgerEntryResponse]:
    return [LedgerEntryResponse.model_validate(entry) for entry in entries]


def _snapshot_payload(snapshot: LedgerSnapshot) -> dict:
    return {
        "lease": _lease_payload(snapshot.lease),
        "entry": LedgerEntryResponse.model_validate(snapshot.entry) if snapshot.entry else None,
        "entries": _entries_payload(snapshot.entries),
    }


@router.get("/properties")
async def list_properties(
    identity: IdentityContext = Depends(require_landlord),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """List the landlord's units, newest first, each with its active lease."""
    start_time = time.time()
    listings = await LeaseRegistry(session).list_units_for_landlord(identity.subject_id)
    properties = []
    for listing in listings:
        unit = UnitResponse.model_validate(listing.unit)
        if listing.active_lease is not None:
            unit.active_lease = _lease_payload(listing.active_lease, listing.unit, listing.renter)
        properties.append(unit)
    _log_debug("properties", start_time, identity, count=len(properties))
    return {"properties": properties}


@router.post("/properties", status_code=status.HTTP_201_CREATED)
async def create_property(
    body: CreateUnitRequest,
    identity: IdentityContext = Depends(require_landlord),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """Create a unit owned by the requesting landlord."""
    unit = await LeaseRegistry(session).create_unit(
        identity,
        title=body.title,
        address=body.address,
        monthly_rent=body.monthly_rent,
        image_url=body.image_url,
        stage=body.stage,
    )
    return {"property": UnitResponse.model_validate(unit)}


@router.get("/leases")
async def list_leases(
    identity: IdentityContext = Depends(require_landlord),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """List every lease across the landlord's units."""
    start_time = time.time()
    listings = await LeaseRegistry(session).list_leases_for_landlord(identity.subject_id)
    leases = [_lease_payload(item.lease, item.unit, item.renter) for item in listings]
    _log_debug("leases", start_time, identity, count=len(leases))
    return {"leases": leases}


@router.post("/leases", status_code=status.HTTP_201_CREATED)
async def create_lease(
    body: CreateLeaseRequest,
    identity: IdentityContext = Depends(require_landlord),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """Create a lease on one of the landlord's units."""
    lease = await LeaseRegistry(session).create_lease(
        identity,
        unit_id=body.property_id,
        renter_id=body.renter_id,
        monthly_rent=body.monthly_rent,
        due_day=body.due_day,
        start_date=body.start_date or date.today(),
        occupants_count=body.occupants_count,
        initial_balance=body.current_balance,
    )
    return {"lease": _lease_payload(lease)}


@router.patch("/leases/{lease_id}/balance")
async def adjust_balance(
    lease_id: int,
    body: BalanceChangeRequest,
    identity: IdentityContext = Depends(require_landlord),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """Add a charge (positive) or a credit (negative) to a lease."""
    start_time = time.time()
    snapshot = await LeaseBalanceEngine(session).charge(lease_id, body.balance, identity)
    _log_debug("balance", start_time, identity, lease_id=lease_id)
    return _snapshot_payload(snapshot)


@router.post("/leases/{lease_id}/monthly-charge", status_code=status.HTTP_201_CREATED)
async def post_monthly_charge(
    lease_id: int,
    identity: IdentityContext = Depends(require_landlord),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """Post one month's rent as a charge."""
    snapshot = await LeaseBalanceEngine(session).post_monthly_charge(lease_id, identity)
    return _snapshot_payload(snapshot)


@router.get("/leases/{lease_id}/ledger")
async def get_ledger(
    lease_id: int,
    identity: IdentityContext = Depends(get_identity),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """Lease and its entries, newest first (owning landlord or renter)."""
    start_time = time.time()
    snapshot = await LeaseBalanceEngine(session).get_ledger(lease_id, identity)
    _log_debug("ledger", start_time, identity, lease_id=lease_id, count=len(snapshot.entries))
    return _snapshot_payload(snapshot)


@router.get("/my-lease")
async def my_lease(
    identity: IdentityContext = Depends(require_renter),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """The renter's most recent lease and its ledger."""
    found = await LeaseRegistry(session).get_renter_lease(identity.subject_id)
    return {
        "lease": _lease_payload(found.lease, found.unit),
        "entries": _entries_payload(found.entries),
    }


@router.post("/payments", status_code=status.HTTP_201_CREATED)
async def record_payment(
    body: PaymentRequest,
    identity: IdentityContext = Depends(require_renter),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """Record a renter payment against their lease."""
    start_time = time.time()
    snapshot = await LeaseBalanceEngine(session).pay(body.lease_id, body.amount, identity)
    _log_debug("payments", start_time, identity, lease_id=snapshot.lease.id, amount=snapshot.entry.amount)
    payload = _snapshot_payload(snapshot)
    payload["payment"] = payload.pop("entry")
    return payload


@router.get("/portal/landlord")
async def landlord_portal(
    identity: IdentityContext = Depends(require_landlord),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """Landlord dashboard: unit cards and summary tiles."""
    return jsonable_encoder(await LandlordPortal(session, identity).dashboard())


@router.get("/portal/renter")
async def renter_portal(
    identity: IdentityContext = Depends(require_renter),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> dict:
    """Renter dashboard: balance, status pill, due dates and ledger feed."""
    return jsonable_encoder(await RenterPortal(session, identity).dashboard())


@router.post("/portal/renter/payments")
async def renter_portal_payment(
    body: PortalPaymentRequest,
    identity: IdentityContext = Depends(require_renter),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> PortalPaymentResponse:
    """Pay from the renter dashboard, optionally with new card details.

    Declined payments come back with ok=false and the reason in status.
    """
    card = None
    if body.card is not None:
        card = CardDetails(body.card.card_number, body.card.expiry, body.card.cvv)
    result = await RenterPortal(session, identity).pay(
        body.amount, card=card, saved_method=body.saved_method
    )
    return PortalPaymentResponse(
        ok=result.ok,
        status=result.status,
        errors=result.errors,
        lease=_lease_payload(result.snapshot.lease) if result.snapshot else None,
        ledger=result.ledger,
    )


__all__ = ["router"]
