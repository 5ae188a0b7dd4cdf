"""Create ParcelFlow tables

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  users, riders, parcels, payments, cashouts, tracking_events.
How:   Generic Uuid / timestamptz columns; defaults are supplied by the ORM,
       so the schema runs unchanged on PostgreSQL and SQLite.

Constraints the lifecycle relies on:
    users.email, riders.email         one account / one application per email
    parcels.tracking_id               label ids never collide
    payments.transaction_id           a payment confirmation is recorded once
    cashouts.parcel_id                a parcel is cashed out at most once

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("photo_url", sa.String(1024), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, comment="user, rider, admin"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "riders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("region", sa.String(120), nullable=True),
        sa.Column("district", sa.String(120), nullable=True),
        sa.Column("national_id", sa.String(64), nullable=True),
        sa.Column("bike_brand", sa.String(120), nullable=True),
        sa.Column("bike_registration", sa.String(64), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, comment="pending, approved, rejected"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_riders_email", "riders", ["email"], unique=True)
    op.create_index("idx_riders_status", "riders", ["status"])

    op.create_table(
        "parcels",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tracking_id", sa.String(32), nullable=False),
        sa.Column("parcel_name", sa.String(255), nullable=True),
        sa.Column("parcel_type", sa.String(50), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("created_by", sa.String(320), nullable=False),
        sa.Column("sender_name", sa.String(255), nullable=True),
        sa.Column("sender_district", sa.String(120), nullable=True),
        sa.Column("receiver_name", sa.String(255), nullable=True),
        sa.Column("receiver_district", sa.String(120), nullable=True),
        sa.Column("cost", sa.Float(), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False),
        sa.Column("delivery_status", sa.String(20), nullable=False),
        sa.Column("assigned_rider_id", sa.Uuid(), nullable=True),
        sa.Column("assigned_rider_name", sa.String(255), nullable=True),
        sa.Column("assigned_rider_email", sa.String(320), nullable=True),
        sa.Column("assigned_rider_phone", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("picked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rider_earning", sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(["assigned_rider_id"], ["riders.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tracking_id"),
    )
    op.create_index("ix_parcels_created_by", "parcels", ["created_by"])
    op.create_index("idx_parcels_created_at", "parcels", [sa.text("created_at DESC")])
    op.create_index("idx_parcels_rider_status", "parcels", ["assigned_rider_id", "delivery_status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("parcel_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("transaction_id", sa.String(255), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payment_time", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["parcel_id"], ["parcels.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_id"),
    )
    op.create_index("ix_payments_parcel_id", "payments", ["parcel_id"])
    op.create_index("ix_payments_email", "payments", ["email"])

    op.create_table(
        "cashouts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("parcel_id", sa.Uuid(), nullable=False),
        sa.Column("rider_email", sa.String(320), nullable=False),
        sa.Column("rider_name", sa.String(255), nullable=True),
        sa.Column("earning", sa.Float(), nullable=False),
        sa.Column("tracking_id", sa.String(32), nullable=True),
        sa.Column("parcel_name", sa.String(255), nullable=True),
        sa.Column("cashed_out_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["parcel_id"], ["parcels.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("parcel_id", name="uq_cashouts_parcel_id"),
    )
    op.create_index("ix_cashouts_rider_email", "cashouts", ["rider_email"])

    op.create_table(
        "tracking_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tracking_id", sa.String(32), nullable=False),
        sa.Column("parcel_id", sa.Uuid(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.String(320), nullable=False),
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["parcel_id"], ["parcels.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_tracking_events_tracking_time", "tracking_events", ["tracking_id", "time"])


def downgrade() -> None:
    op.drop_index("idx_tracking_events_tracking_time", table_name="tracking_events")
    op.drop_table("tracking_events")
    op.drop_index("ix_cashouts_rider_email", table_name="cashouts")
    op.drop_table("cashouts")
    op.drop_index("ix_payments_email", table_name="payments")
    op.drop_index("ix_payments_parcel_id", table_name="payments")
    op.drop_table("payments")
    op.drop_index("idx_parcels_rider_status", table_name="parcels")
    op.drop_index("idx_parcels_created_at", table_name="parcels")
    op.drop_index("ix_parcels_created_by", table_name="parcels")
    op.drop_table("parcels")
    op.drop_index("idx_riders_status", table_name="riders")
    op.drop_index("ix_riders_email", table_name="riders")
    op.drop_table("riders")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
