from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, get_principal
from parcelflow.database import get_db_session
from parcelflow.schemas.common import Envelope, ErrorResponse
from parcelflow.schemas.tracking import TrackingCreate, TrackingEventResponse
from parcelflow.services.tracking_service import tracking_service

router = APIRouter(prefix="/tracking", tags=["Tracking"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[TrackingEventResponse],
    responses={
        401: {"description": "Missing or invalid credential", "model": ErrorResponse},
        404: {"description": "Referenced parcel not found", "model": ErrorResponse},
    },
    summary="Append a tracking event",
)
async def record_event(
    payload: TrackingCreate,
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[TrackingEventResponse]:
    event = await tracking_service.record_event(db, payload, principal.email)
    return Envelope(message="Tracking event recorded", data=TrackingEventResponse.model_validate(event))


@router.get(
    "/{tracking_id}",
    response_model=Envelope[List[TrackingEventResponse]],
    responses={401: {"description": "Missing or invalid credential", "model": ErrorResponse}},
    summary="Tracking history, oldest first",
)
async def list_events(
    tracking_id: str,
    db: AsyncSession = Depends(get_db_session),
    _: Principal = Depends(get_principal),
) -> Envelope[List[TrackingEventResponse]]:
    events = await tracking_service.list_events(db, tracking_id)
    return Envelope(data=[TrackingEventResponse.model_validate(e) for e in events])
