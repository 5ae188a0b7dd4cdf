"""
ParcelFlow Backend — User Route Handlers
==========================================

What:  POST /users (login upsert), role read/write, admin email search.
Who:   The client calls POST /users after every sign-in and reads its role
       to decide which dashboard to show.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, authorize, get_principal, is_self, require_admin
from parcelflow.database import get_db_session
from parcelflow.schemas.common import Envelope, ErrorResponse
from parcelflow.schemas.user import (
    RoleResponse,
    RoleUpdate,
    UserResponse,
    UserSummary,
    UserUpsert,
)
from parcelflow.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=Envelope[UserResponse],
    responses={
        201: {"description": "User inserted on first login"},
        400: {"description": "Invalid body", "model": ErrorResponse},
        401: {"description": "Missing credential", "model": ErrorResponse},
        403: {"description": "Email does not match the credential", "model": ErrorResponse},
    },
    summary="Upsert a user on login",
    description=(
        "Inserts the signed-in user on first login with the user role (name, "
        "photoURL, created_at are insert-only) and refreshes last_login on "
        "every later call. The body email must match the credential."
    ),
)
async def upsert_user(
    payload: UserUpsert,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(get_principal),
) -> Envelope[UserResponse]:
    authorize(principal, is_self(payload.email))
    user, created = await user_service.upsert_user(db, payload)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return Envelope(
        message="User created" if created else "Login recorded",
        data=UserResponse.model_validate(user),
    )


@router.get(
    "/search",
    response_model=Envelope[List[UserSummary]],
    responses={
        400: {"description": "Missing email query", "model": ErrorResponse},
        401: {"description": "Missing credential", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
    },
    summary="Search users by email fragment (admin)",
)
async def search_users(
    email: Optional[str] = Query(default=None, description="Case-insensitive email substring"),
    db: AsyncSession = Depends(get_db_session),
    _: Principal = Depends(require_admin),
) -> Envelope[List[UserSummary]]:
    users = await user_service.search_users(db, email)
    return Envelope(data=[UserSummary.model_validate(u) for u in users])


@router.get(
    "/{email}/role",
    response_model=Envelope[RoleResponse],
    responses={
        401: {"description": "Missing credential", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Read a user's role",
)
async def get_role(
    email: str,
    db: AsyncSession = Depends(get_db_session),
    _: Principal = Depends(get_principal),
) -> Envelope[RoleResponse]:
    role = await user_service.get_role(db, email)
    return Envelope(data=RoleResponse(email=email, role=role))


@router.patch(
    "/{email}/role",
    response_model=Envelope[RoleResponse],
    responses={
        401: {"description": "Missing credential", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Change a user's role (admin)",
)
async def set_role(
    email: str,
    payload: RoleUpdate,
    db: AsyncSession = Depends(get_db_session),
    admin: Principal = Depends(require_admin),
) -> Envelope[RoleResponse]:
    role = await user_service.set_role(db, email, payload.role)
    logger.info("Admin %s changed role of %s", admin.email, email)
    return Envelope(message="Role updated", data=RoleResponse(email=email, role=role))
