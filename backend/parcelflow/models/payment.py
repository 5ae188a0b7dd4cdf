"""
ParcelFlow Backend — Payment (Payment Ledger)
===============================================

What:  Append-only ledger of completed card payments.
Invariant: `amount` is in major units. The client reports minor units and
       the service divides by 100 before inserting.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from parcelflow.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    parcel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("parcels.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    # Gateway transaction id; a replayed confirmation is rejected by this key
    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    amount: Mapped[float] = mapped_column(Float, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    # Client-reported payment time; falls back to server time
    payment_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Payment(transaction_id='{self.transaction_id}', amount={self.amount})>"
