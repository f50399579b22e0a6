"""Lease ORM model binding a unit, a renter and a running balance."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class Lease(Base, BaseModel):
    """Model representing a lease on a rental unit.

    current_balance is a cached value: positive means the renter owes money,
    negative means the renter holds a credit. It equals opening_balance plus
    the effect of every ledger entry and is only changed by the balance engine,
    in the same transaction that appends the entry.
    """

    __tablename__ = "leases"

    unit_id: Mapped[int] = mapped_column(
        ForeignKey("rental_units.id"),
        nullable=False,
        index=True,
    )
    renter_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    occupants_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    monthly_rent: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Rent posted each month; also the paid/overdue threshold",
    )
    due_day: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Day of month rent is due (1-31)",
    )
    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Balance the lease was created with (not a ledger entry)",
    )
    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Cached running balance",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
    )

    # Relationships
    unit: Mapped["RentalUnit"] = relationship(  # noqa: F821
        "RentalUnit",
        back_populates="leases",
        foreign_keys=[unit_id],
    )
    renter: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="leases",
        foreign_keys=[renter_id],
    )
    entries: Mapped[list["LedgerEntry"]] = relationship(  # noqa: F821
        "LedgerEntry",
        foreign_keys="LedgerEntry.lease_id",
        viewonly=True,
    )

    __table_args__ = (
        Index("idx_lease_unit_active", "unit_id", "is_active"),
        Index("idx_lease_renter", "renter_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Lease(id={self.id}, unit_id={self.unit_id}, renter_id={self.renter_id}, "
            f"monthly_rent={self.monthly_rent}, due_day={self.due_day}, "
            f"current_balance={self.current_balance}, is_active={self.is_active})>"
        )


__all__ = ["Lease"]
