"""
ParcelFlow Backend — Parcel Route Handlers
============================================

What:  Parcel CRUD plus the admin Assign and the Pick transitions.

Access:
    GET    /parcels                authenticated (non-admins: own parcels)
    POST   /parcels                authenticated (creator = caller)
    GET    /parcels/{id}           public (tracking page)
    DELETE /parcels/{id}           admin, or creator while unpaid/pending
    PATCH  /parcels/{id}/assign    admin
    PATCH  /parcels/{id}/pick      assigned rider, or admin
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, get_principal, require_admin
from parcelflow.database import get_db_session
from parcelflow.lifecycle import DeliveryStatus, PaymentStatus
from parcelflow.schemas.common import Envelope, ErrorResponse
from parcelflow.schemas.parcel import AssignRiderRequest, ParcelCreate, ParcelResponse
from parcelflow.services.parcel_service import parcel_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/parcels", tags=["Parcels"])

_AUTH_ERRORS = {
    401: {"description": "Missing or invalid credential", "model": ErrorResponse},
    403: {"description": "Not allowed for this caller", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=Envelope[List[ParcelResponse]],
    responses=_AUTH_ERRORS,
    summary="List parcels, newest first",
)
async def list_parcels(
    email: Optional[str] = Query(default=None, description="Creator email"),
    payment_status: Optional[PaymentStatus] = Query(default=None),
    delivery_status: Optional[DeliveryStatus] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[List[ParcelResponse]]:
    parcels = await parcel_service.list_parcels(
        db,
        principal,
        email=email,
        payment_status=payment_status,
        delivery_status=delivery_status,
    )
    return Envelope(data=[ParcelResponse.model_validate(p) for p in parcels])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[ParcelResponse],
    responses={
        400: {"description": "Invalid body", "model": ErrorResponse},
        409: {"description": "Tracking ID already in use", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Create a parcel",
)
async def create_parcel(
    payload: ParcelCreate,
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[ParcelResponse]:
    parcel = await parcel_service.create_parcel(db, payload, principal.email)
    return Envelope(message="Parcel created successfully", data=ParcelResponse.model_validate(parcel))


@router.get(
    "/{parcel_id}",
    response_model=Envelope[ParcelResponse],
    responses={404: {"description": "Parcel not found", "model": ErrorResponse}},
    summary="Get a parcel by ID",
)
async def get_parcel(
    parcel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[ParcelResponse]:
    parcel = await parcel_service.get_parcel(db, parcel_id)
    return Envelope(data=ParcelResponse.model_validate(parcel))


@router.delete(
    "/{parcel_id}",
    response_model=Envelope[None],
    responses={
        404: {"description": "Parcel not found", "model": ErrorResponse},
        409: {"description": "Parcel already paid, moving, or in a ledger", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Delete a parcel",
)
async def delete_parcel(
    parcel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[None]:
    await parcel_service.delete_parcel(db, parcel_id, principal)
    return Envelope(message="Parcel deleted")


@router.patch(
    "/{parcel_id}/assign",
    response_model=Envelope[ParcelResponse],
    responses={
        404: {"description": "Parcel or rider not found", "model": ErrorResponse},
        409: {"description": "Rider not approved, or parcel past pickup", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Assign an approved rider (admin)",
)
async def assign_rider(
    parcel_id: UUID,
    payload: AssignRiderRequest,
    db: AsyncSession = Depends(get_db_session),
    _: Principal = Depends(require_admin),
) -> Envelope[ParcelResponse]:
    parcel = await parcel_service.assign(db, parcel_id, payload.rider_id)
    return Envelope(message="Rider assigned successfully", data=ParcelResponse.model_validate(parcel))


@router.patch(
    "/{parcel_id}/pick",
    response_model=Envelope[ParcelResponse],
    responses={
        404: {"description": "Parcel not found or not assigned to you", "model": ErrorResponse},
        409: {"description": "Parcel already picked", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Mark a parcel as picked up",
)
async def pick_parcel(
    parcel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[ParcelResponse]:
    parcel = await parcel_service.pick(db, parcel_id, principal)
    return Envelope(message="Parcel marked as picked", data=ParcelResponse.model_validate(parcel))
