"""
ParcelFlow Backend — Rider (Rider Registry)
=============================================

What:  ORM model for rider applications and their review status.
Lifecycle:
    1. Created on application (status = 'pending')
    2. Reviewed once by an admin: 'approved' (user role promoted to rider)
       or 'rejected'. Both outcomes are terminal.
    Only approved riders may be assigned parcels.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from parcelflow.database import Base
from parcelflow.lifecycle import RiderStatus


class Rider(Base):
    __tablename__ = "riders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # One application per email; deliveries are matched to the caller by it
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)

    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    district: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    national_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    bike_brand: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    bike_registration: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RiderStatus.PENDING.value,
        comment="pending, approved, rejected",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_riders_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Rider(id={self.id}, email='{self.email}', status='{self.status}')>"
