from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, get_principal
from parcelflow.database import get_db_session
from parcelflow.schemas.cashout import CashoutResponse
from parcelflow.schemas.common import Envelope, ErrorResponse
from parcelflow.services.cashout_service import cashout_service

router = APIRouter(tags=["Cashouts"])


@router.get(
    "/cashouts",
    response_model=Envelope[List[CashoutResponse]],
    responses={
        400: {"description": "Missing rider_email", "model": ErrorResponse},
        401: {"description": "Missing or invalid credential", "model": ErrorResponse},
        403: {"description": "Another rider's cashouts", "model": ErrorResponse},
    },
    summary="Cashouts of a rider",
)
async def list_cashouts(
    rider_email: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[List[CashoutResponse]]:
    cashouts = await cashout_service.list_cashouts(db, principal, rider_email)
    return Envelope(data=[CashoutResponse.model_validate(c) for c in cashouts])
