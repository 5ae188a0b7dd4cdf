"""
ParcelFlow Backend — Rider Dashboard Route Handlers
=====================================================

What:  Endpoints a rider calls about their own deliveries. The rider is
       always resolved from the bearer credential's email.

    GET   /rider/parcels               assigned / on_the_way / delivered
    PATCH /rider/parcels/{id}/status   on_the_way (pickup) or delivered
    POST  /rider/cashout               one payout per delivered parcel
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, get_principal
from parcelflow.database import get_db_session
from parcelflow.schemas.cashout import CashoutRequest, CashoutResponse
from parcelflow.schemas.common import Envelope, ErrorResponse
from parcelflow.schemas.parcel import DeliveryStatusUpdate, ParcelResponse
from parcelflow.services.cashout_service import cashout_service
from parcelflow.services.parcel_service import parcel_service

router = APIRouter(prefix="/rider", tags=["Rider"])


@router.get(
    "/parcels",
    response_model=Envelope[List[ParcelResponse]],
    responses={
        401: {"description": "Missing or invalid credential", "model": ErrorResponse},
        404: {"description": "Caller is not a rider", "model": ErrorResponse},
    },
    summary="Parcels assigned to the calling rider",
)
async def my_parcels(
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[List[ParcelResponse]]:
    parcels = await parcel_service.list_rider_parcels(db, principal.email)
    return Envelope(data=[ParcelResponse.model_validate(p) for p in parcels])


@router.patch(
    "/parcels/{parcel_id}/status",
    response_model=Envelope[ParcelResponse],
    responses={
        400: {"description": "Status not settable by a rider", "model": ErrorResponse},
        401: {"description": "Missing or invalid credential", "model": ErrorResponse},
        404: {"description": "Parcel not found or not assigned to you", "model": ErrorResponse},
        409: {"description": "Transition not allowed from the current status", "model": ErrorResponse},
    },
    summary="Update delivery status (pickup or delivery)",
)
async def update_status(
    parcel_id: UUID,
    payload: DeliveryStatusUpdate,
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[ParcelResponse]:
    parcel = await parcel_service.update_status_by_rider(
        db, parcel_id, principal.email, payload.delivery_status,
    )
    return Envelope(message="Status updated successfully", data=ParcelResponse.model_validate(parcel))


@router.post(
    "/cashout",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[CashoutResponse],
    responses={
        401: {"description": "Missing or invalid credential", "model": ErrorResponse},
        404: {"description": "Parcel not found or not delivered", "model": ErrorResponse},
        409: {"description": "Already cashed out", "model": ErrorResponse},
    },
    summary="Cash out the earning of a delivered parcel",
)
async def cashout(
    payload: CashoutRequest,
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[CashoutResponse]:
    record = await cashout_service.cashout(db, payload.parcel_id, principal.email)
    return Envelope(message="Cash out successful", data=CashoutResponse.model_validate(record))
