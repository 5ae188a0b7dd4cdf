"""
ParcelFlow Backend — Cashout (Cashout Ledger)
===============================================

What:  Append-only ledger of rider earning payouts, one per delivered parcel.
Invariant: UNIQUE(parcel_id). Two concurrent cashout requests for the same
       parcel race on this constraint; exactly one insert wins.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from parcelflow.database import Base


class Cashout(Base):
    __tablename__ = "cashouts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    parcel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("parcels.id", ondelete="RESTRICT"), nullable=False,
    )
    rider_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    rider_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    earning: Mapped[float] = mapped_column(Float, nullable=False)
    tracking_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    parcel_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    cashed_out_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("parcel_id", name="uq_cashouts_parcel_id"),
    )

    def __repr__(self) -> str:
        return f"<Cashout(parcel_id={self.parcel_id}, earning={self.earning})>"
