import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.lifecycle import RIDER_TRANSITIONS, RiderStatus, source_values
from parcelflow.models.rider import Rider


class RiderRepository:
    """Rider registry."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, rider: Rider) -> Rider:
        self.session.add(rider)
        await self.session.flush()
        return rider

    async def get(self, rider_id: uuid.UUID, refresh: bool = False) -> Optional[Rider]:
        return await self.session.get(Rider, rider_id, populate_existing=refresh)

    async def get_by_email(self, email: str) -> Optional[Rider]:
        result = await self.session.execute(select(Rider).where(Rider.email == email))
        return result.scalar_one_or_none()

    async def list_by_status(self, status: Optional[RiderStatus] = None) -> List[Rider]:
        query = select(Rider)
        if status is not None:
            query = query.where(Rider.status == status.value)
        query = query.order_by(desc(Rider.created_at))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def transition_status(self, rider_id: uuid.UUID, target: RiderStatus) -> bool:
        """Moves the rider to `target` only from a listed source state."""
        result = await self.session.execute(
            update(Rider)
            .where(
                Rider.id == rider_id,
                Rider.status.in_(source_values(RIDER_TRANSITIONS, target)),
            )
            .values(status=target.value, reviewed_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
