import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.exceptions import NotFoundError, database_errors
from parcelflow.models.tracking import TrackingEvent
from parcelflow.repositories.tracking import TrackingRepository
from parcelflow.schemas.tracking import TrackingCreate

logger = logging.getLogger(__name__)


class TrackingService:
    """Append-only tracking log; no lifecycle rules apply here."""

    async def record_event(
        self, db: AsyncSession, payload: TrackingCreate, caller_email: str
    ) -> TrackingEvent:
        event = TrackingEvent(
            tracking_id=payload.tracking_id,
            parcel_id=payload.parcel_id,
            status=payload.status,
            message=payload.message,
            updated_by=payload.updated_by or caller_email,
        )
        with database_errors("record tracking event", tracking_id=payload.tracking_id):
            try:
                await TrackingRepository(db).add(event)
            except IntegrityError:
                await db.rollback()
                raise NotFoundError(resource="parcel", resource_id=str(payload.parcel_id), message="Parcel not found")
        logger.info("Tracking %s: %s", event.tracking_id, event.status)
        return event

    async def list_events(self, db: AsyncSession, tracking_id: str) -> List[TrackingEvent]:
        with database_errors("list tracking events", tracking_id=tracking_id):
            return await TrackingRepository(db).list_for_tracking_id(tracking_id)


# ── Singleton Instance ────────────────────────────────────────────────────
tracking_service = TrackingService()
