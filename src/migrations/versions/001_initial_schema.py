"""Initial schema: users, rental units, leases and ledger entries.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, comment="Login email, stored lowercase"),
        sa.Column("full_name", sa.String(length=255), nullable=True, comment="Display name"),
        sa.Column("role", sa.String(length=20), nullable=False, comment="'landlord' or 'renter'"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.Index("idx_user_email", "email", unique=True),
        sa.Index("idx_user_role", "role"),
    )

    # Create rental_units table
    op.create_table(
        "rental_units",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("landlord_id", sa.Integer(), nullable=False, comment="Owning landlord"),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("image_url", sa.String(length=500), nullable=True, comment="Optional photo URL"),
        sa.Column(
            "stage",
            sa.String(length=50),
            nullable=False,
            server_default="Reviewing",
            comment="Pipeline stage label",
        ),
        sa.Column(
            "monthly_rent",
            sa.Numeric(precision=12, scale=2),
            nullable=False,
            server_default="0",
            comment="Advertised monthly rent",
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["landlord_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("idx_unit_landlord", "landlord_id"),
    )

    # Create leases table
    op.create_table(
        "leases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("unit_id", sa.Integer(), nullable=False),
        sa.Column("renter_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("occupants_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("monthly_rent", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("due_day", sa.Integer(), nullable=False, comment="Day of month rent is due (1-31)"),
        sa.Column("opening_balance", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("current_balance", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["unit_id"], ["rental_units.id"]),
        sa.ForeignKeyConstraint(["renter_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("idx_lease_unit_active", "unit_id", "is_active"),
        sa.Index("idx_lease_renter", "renter_id"),
    )

    # Create ledger_entries table
    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lease_id", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False, comment="'payment', 'charge' or 'credit'"),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("method", sa.String(length=100), nullable=True, comment="How a payment was made, e.g. masked card"),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["lease_id"], ["leases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("idx_entry_lease_recorded", "lease_id", "recorded_at"),
    )


def downgrade() -> None:
    op.drop_table("ledger_entries")
    op.drop_table("leases")
    op.drop_table("rental_units")
    op.drop_table("users")
