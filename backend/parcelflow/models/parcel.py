"""
ParcelFlow Backend — Parcel (Parcel Lifecycle Store)
======================================================

What:  ORM model for the central entity: a shipment with a payment status, a
       delivery status, and (once assigned) a denormalized copy of its rider.

Lifecycle:
    1. Created by a customer: payment_status='unpaid', delivery_status='pending'
    2. Payment recorded: payment_status='paid'
    3. Admin assigns an approved rider: rider fields copied, status='assigned'
    4. Rider picks up: picked_at set, status='on_the_way'
    5. Rider delivers: delivered_at and rider_earning set, status='delivered'
    Deleted only by its creator before any of the above, or by an admin.

Invariants:
    - delivered is reachable only through assigned → on_the_way
    - rider_earning is written once, by the same UPDATE that enters 'delivered'

Query Patterns:
    - Customer history: WHERE created_by = :email ORDER BY created_at DESC
    - Rider board:      WHERE assigned_rider_id = :id AND delivery_status IN (...)
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from parcelflow.database import Base
from parcelflow.lifecycle import DeliveryStatus, PaymentStatus


class Parcel(Base):
    __tablename__ = "parcels"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Human-facing id printed on labels and used by the tracking log
    tracking_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    parcel_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    parcel_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_by: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    sender_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sender_district: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    receiver_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    receiver_district: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # Major currency units
    cost: Mapped[float] = mapped_column(Float, nullable=False)

    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.UNPAID.value,
    )
    delivery_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DeliveryStatus.PENDING.value,
    )

    # ── Assignment (copied from the rider at assignment time) ────────────
    assigned_rider_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("riders.id", ondelete="SET NULL"), nullable=True,
    )
    assigned_rider_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    assigned_rider_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    assigned_rider_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    picked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    rider_earning: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    __table_args__ = (
        Index("idx_parcels_created_at", created_at.desc()),
        Index("idx_parcels_rider_status", "assigned_rider_id", "delivery_status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Parcel(id={self.id}, tracking_id='{self.tracking_id}', "
            f"payment='{self.payment_status}', delivery='{self.delivery_status}')>"
        )
