"""User ORM model for landlord and renter identities."""

from enum import Enum

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class UserRole(str, Enum):
    """Role carried by an identity."""

    LANDLORD = "landlord"
    """Owns rental units, creates leases, posts charges and credits."""

    RENTER = "renter"
    """Holds leases and pays against them."""


class User(Base, BaseModel):
    """
    Identity record for anyone who can act on a lease.

    Authentication itself happens elsewhere; this table only gives units and
    leases something to point at and lets landlord views show who a renter is.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Login email, stored lowercase",
    )
    full_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Display name"
    )
    role: Mapped[UserRole] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.RENTER,
        comment="'landlord' or 'renter'",
    )

    # Relationships
    units: Mapped[list["RentalUnit"]] = relationship(  # noqa: F821
        "RentalUnit",
        back_populates="landlord",
        foreign_keys="RentalUnit.landlord_id",
    )
    leases: Mapped[list["Lease"]] = relationship(  # noqa: F821
        "Lease",
        back_populates="renter",
        foreign_keys="Lease.renter_id",
    )

    __table_args__ = (
        Index("idx_user_email", "email", unique=True),
        Index("idx_user_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, role={self.role})>"


__all__ = ["User", "UserRole"]
