"""
ParcelFlow Backend — User Service (Identity & Role Store)
===========================================================

What:  Login upsert, role reads for the client, and admin role management.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.exceptions import NotFoundError, ValidationError, database_errors
from parcelflow.lifecycle import UserRole
from parcelflow.models.user import User
from parcelflow.repositories.users import UserRepository
from parcelflow.schemas.user import UserUpsert

logger = logging.getLogger(__name__)


class UserService:

    async def upsert_user(self, db: AsyncSession, payload: UserUpsert) -> Tuple[User, bool]:
        """
        Called after every client sign-in. Returns (user, created).

        Only the first login sets name and photo. New users get the user role;
        roles change only through set_role and rider approval.
        """
        with database_errors("upsert user", email=payload.email):
            user, created = await UserRepository(db).upsert_login(
                email=payload.email,
                name=payload.name,
                photo_url=payload.photo_url,
                created_at=payload.created_at,
                last_login=payload.last_login,
            )
        if created:
            logger.info("New user %s (role=%s)", user.email, user.role)
        return user, created

    async def get_role(self, db: AsyncSession, email: str) -> str:
        with database_errors("get role", email=email):
            user = await UserRepository(db).get_by_email(email)
        if user is None:
            raise NotFoundError(resource="user", message="User not found")
        return user.role or UserRole.USER.value

    async def set_role(self, db: AsyncSession, email: str, role: UserRole) -> str:
        with database_errors("set role", email=email):
            matched = await UserRepository(db).set_role(email, role)
        if matched == 0:
            raise NotFoundError(resource="user", message="User not found")
        logger.info("Role of %s set to %s", email, role.value)
        return role.value

    async def search_users(self, db: AsyncSession, email: Optional[str]) -> List[User]:
        if not email:
            raise ValidationError(message="Missing email query", field="email")
        with database_errors("search users"):
            return await UserRepository(db).search_by_email(email)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
