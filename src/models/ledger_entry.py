"""LedgerEntry ORM model: one immutable event affecting a lease balance."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class EntryKind(str, Enum):
    """Ledger entry classification."""

    PAYMENT = "payment"
    """Renter paid; amount > 0, subtracted from the balance."""

    CHARGE = "charge"
    """Landlord posted rent or an ad hoc charge; amount > 0, added."""

    CREDIT = "credit"
    """Landlord discount or correction; amount < 0, added."""


class LedgerEntry(Base, BaseModel):
    """Append-only ledger row.

    Rows are never updated or deleted. The amount is stored as submitted:
    positive for payments and charges, negative for credits.
    """

    __tablename__ = "ledger_entries"

    lease_id: Mapped[int] = mapped_column(
        ForeignKey("leases.id"),
        nullable=False,
        index=True,
    )
    kind: Mapped[EntryKind] = mapped_column(
        String(20),
        nullable=False,
        default=EntryKind.PAYMENT,
        comment="'payment', 'charge' or 'credit'",
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="How a payment was made, e.g. masked card",
    )
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    lease: Mapped["Lease"] = relationship(  # noqa: F821
        "Lease",
        foreign_keys=[lease_id],
    )

    __table_args__ = (Index("idx_entry_lease_recorded", "lease_id", "recorded_at"),)

    @property
    def balance_effect(self) -> Decimal:
        """Signed change this entry made to the lease balance."""
        if EntryKind(self.kind) == EntryKind.PAYMENT:
            return -self.amount
        return self.amount

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry(id={self.id}, lease_id={self.lease_id}, kind={self.kind}, "
            f"amount={self.amount}, recorded_at={self.recorded_at})>"
        )


__all__ = ["LedgerEntry", "EntryKind"]
