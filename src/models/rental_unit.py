"""RentalUnit ORM model for landlord-owned units."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class RentalUnit(Base, BaseModel):
    """Model representing a unit a landlord rents out.

    The advertised rent is informational only; the rent that drives the ledger
    lives on the lease. The stage is a free-text pipeline label
    ("Reviewing", "Listed", ...) with no engine semantics.
    """

    __tablename__ = "rental_units"

    landlord_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Owning landlord",
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    image_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Optional photo URL",
    )
    stage: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="Reviewing",
        comment="Pipeline stage label",
    )
    monthly_rent: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Advertised monthly rent",
    )

    # Relationships
    landlord: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="units",
        foreign_keys=[landlord_id],
    )
    leases: Mapped[list["Lease"]] = relationship(  # noqa: F821
        "Lease",
        back_populates="unit",
        foreign_keys="Lease.unit_id",
    )

    __table_args__ = (Index("idx_unit_landlord", "landlord_id"),)

    def __repr__(self) -> str:
        return (
            f"<RentalUnit(id={self.id}, landlord_id={self.landlord_id}, "
            f"title={self.title!r}, stage={self.stage!r}, monthly_rent={self.monthly_rent})>"
        )


__all__ = ["RentalUnit"]
