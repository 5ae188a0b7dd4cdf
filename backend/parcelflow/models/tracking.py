"""
ParcelFlow Backend — Tracking Event (Tracking Log)
====================================================

What:  Append-only status log keyed by tracking id. Rows are never updated.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from parcelflow.database import Base


class TrackingEvent(Base):
    __tablename__ = "tracking_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    tracking_id: Mapped[str] = mapped_column(String(32), nullable=False)
    parcel_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("parcels.id", ondelete="SET NULL"), nullable=True,
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_by: Mapped[str] = mapped_column(String(320), nullable=False, default="")

    time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_tracking_events_tracking_time", "tracking_id", "time"),
    )

    def __repr__(self) -> str:
        return f"<TrackingEvent(tracking_id='{self.tracking_id}', status='{self.status}')>"
