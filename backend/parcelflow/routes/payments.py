"""
ParcelFlow Backend — Payment Route Handlers
=============================================

What:  Payment history, RecordPayment, and gateway payment intents.

    GET  /payments?email=          authenticated (non-admins: own history)
    POST /payments                 authenticated; amount in minor units
    POST /create-payment-intent    public; amount in major units
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, get_principal
from parcelflow.database import get_db_session
from parcelflow.schemas.common import Envelope, ErrorResponse
from parcelflow.schemas.payment import (
    PaymentCreate,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentResponse,
)
from parcelflow.services.gateway_base import PaymentGateway
from parcelflow.services.payment_service import payment_service
from parcelflow.services.stripe_gateway import get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


@router.get(
    "/payments",
    response_model=Envelope[List[PaymentResponse]],
    responses={
        401: {"description": "Missing or invalid credential", "model": ErrorResponse},
        403: {"description": "Another user's history", "model": ErrorResponse},
    },
    summary="Payment history, latest first",
)
async def list_payments(
    email: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[List[PaymentResponse]]:
    payments = await payment_service.list_payments(db, principal, email)
    return Envelope(data=[PaymentResponse.model_validate(p) for p in payments])


@router.post(
    "/payments",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[PaymentResponse],
    responses={
        400: {"description": "Missing payment information", "model": ErrorResponse},
        401: {"description": "Missing or invalid credential", "model": ErrorResponse},
        404: {"description": "Parcel not found", "model": ErrorResponse},
        409: {"description": "Parcel already paid", "model": ErrorResponse},
    },
    summary="Record a completed payment",
    description=(
        "Marks the parcel paid and appends a payment ledger entry. `amount` is "
        "in minor currency units and stored divided by 100."
    ),
)
async def record_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db_session),
    _: Principal = Depends(get_principal),
) -> Envelope[PaymentResponse]:
    payment = await payment_service.record_payment(db, payload)
    return Envelope(
        message="Payment recorded, parcel marked as paid",
        data=PaymentResponse.model_validate(payment),
    )


@router.post(
    "/create-payment-intent",
    response_model=Envelope[PaymentIntentResponse],
    responses={
        400: {"description": "Amount must be positive", "model": ErrorResponse},
        500: {"description": "Payment gateway failure", "model": ErrorResponse},
    },
    summary="Create a card payment intent",
)
async def create_payment_intent(
    payload: PaymentIntentRequest,
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> Envelope[PaymentIntentResponse]:
    intent = await payment_service.create_payment_intent(gateway, payload.amount)
    return Envelope(
        data=PaymentIntentResponse(
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
        ),
    )
