from typing import List

from sqlalchemy import asc, select
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.models.tracking import TrackingEvent


class TrackingRepository:
    """Append-only tracking log."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, event: TrackingEvent) -> TrackingEvent:
        self.session.add(event)
        await self.session.flush()
        return event

    async def list_for_tracking_id(self, tracking_id: str) -> List[TrackingEvent]:
        """Oldest first, the order the events were recorded in."""
        result = await self.session.execute(
            select(TrackingEvent)
            .where(TrackingEvent.tracking_id == tracking_id)
            .order_by(asc(TrackingEvent.time))
        )
        return list(result.scalars().all())
