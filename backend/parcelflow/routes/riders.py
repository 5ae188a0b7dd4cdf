"""
ParcelFlow Backend — Rider Registry Route Handlers
====================================================

What:  Rider applications and the admin review workflow.

Access:
    POST  /riders              authenticated (applicant = caller)
    GET   /riders/pending      admin
    GET   /riders/approved     admin
    GET   /riders?status=      admin (status=available → approved)
    PATCH /riders/{id}/status  admin (approve also promotes the user role)
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, get_principal, require_admin
from parcelflow.database import get_db_session
from parcelflow.lifecycle import RiderStatus
from parcelflow.schemas.common import Envelope, ErrorResponse
from parcelflow.schemas.rider import RiderApplication, RiderResponse, RiderReview, RiderSummary
from parcelflow.services.rider_service import rider_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/riders", tags=["Riders"])

_ADMIN_ERRORS = {
    401: {"description": "Missing or invalid credential", "model": ErrorResponse},
    403: {"description": "Admin only", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[RiderResponse],
    responses={
        401: {"description": "Missing or invalid credential", "model": ErrorResponse},
        409: {"description": "Already applied", "model": ErrorResponse},
    },
    summary="Apply to become a rider",
)
async def apply(
    application: RiderApplication,
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[RiderResponse]:
    rider = await rider_service.apply(db, application, principal.email)
    return Envelope(message="Application submitted", data=RiderResponse.model_validate(rider))


@router.get(
    "/pending",
    response_model=Envelope[List[RiderResponse]],
    responses=_ADMIN_ERRORS,
    summary="Applications awaiting review (admin)",
)
async def list_pending(
    db: AsyncSession = Depends(get_db_session),
    _: Principal = Depends(require_admin),
) -> Envelope[List[RiderResponse]]:
    riders = await rider_service.list_riders(db, RiderStatus.PENDING.value)
    return Envelope(data=[RiderResponse.model_validate(r) for r in riders])


@router.get(
    "/approved",
    response_model=Envelope[List[RiderResponse]],
    responses=_ADMIN_ERRORS,
    summary="Approved riders (admin)",
)
async def list_approved(
    db: AsyncSession = Depends(get_db_session),
    _: Principal = Depends(require_admin),
) -> Envelope[List[RiderResponse]]:
    riders = await rider_service.list_riders(db, RiderStatus.APPROVED.value)
    return Envelope(data=[RiderResponse.model_validate(r) for r in riders])


@router.get(
    "",
    response_model=Envelope[List[RiderSummary]],
    responses={400: {"description": "Unknown status", "model": ErrorResponse}, **_ADMIN_ERRORS},
    summary="Riders for the assignment picker (admin)",
)
async def list_riders(
    status_filter: Optional[str] = Query(
        default=None,
        alias="status",
        description="pending, approved, rejected, or 'available' (= approved)",
    ),
    db: AsyncSession = Depends(get_db_session),
    _: Principal = Depends(require_admin),
) -> Envelope[List[RiderSummary]]:
    riders = await rider_service.list_riders(db, status_filter)
    return Envelope(data=[RiderSummary.model_validate(r) for r in riders])


@router.patch(
    "/{rider_id}/status",
    response_model=Envelope[RiderResponse],
    responses={
        400: {"description": "Status must be approved or rejected", "model": ErrorResponse},
        404: {"description": "Rider or user not found", "model": ErrorResponse},
        409: {"description": "Already reviewed", "model": ErrorResponse},
        **_ADMIN_ERRORS,
    },
    summary="Approve or reject an application (admin)",
)
async def review(
    rider_id: UUID,
    payload: RiderReview,
    db: AsyncSession = Depends(get_db_session),
    admin: Principal = Depends(require_admin),
) -> Envelope[RiderResponse]:
    rider = await rider_service.review(db, rider_id, payload.status)
    logger.info("Admin %s reviewed rider %s", admin.email, rider_id)
    return Envelope(message=f"Rider {rider.status}", data=RiderResponse.model_validate(rider))
