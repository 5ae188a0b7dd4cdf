import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.lifecycle import UserRole
from parcelflow.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Identity & role store."""

    SEARCH_LIMIT = 10

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def search_by_email(self, fragment: str) -> List[User]:
        """Case-insensitive substring match, capped at SEARCH_LIMIT rows."""
        result = await self.session.execute(
            select(User)
            .where(User.email.ilike(f"%{fragment}%"))
            .order_by(User.email)
            .limit(self.SEARCH_LIMIT)
        )
        return list(result.scalars().all())

    async def upsert_login(
        self,
        email: str,
        name: Optional[str] = None,
        photo_url: Optional[str] = None,
        created_at: Optional[datetime] = None,
        last_login: Optional[datetime] = None,
    ) -> Tuple[User, bool]:
        """
        Insert the user on first login, otherwise refresh last_login only.

        name/photo_url/created_at are insert-only and every new user starts
        with the user role. Returns (user, created).
        A concurrent first login for the same email loses on the unique
        index; the loser rolls back and takes the update path.
        """
        last_login = last_login or datetime.now(timezone.utc)

        user = await self.get_by_email(email)
        if user is None:
            user = User(
                email=email,
                name=name,
                photo_url=photo_url,
                role=UserRole.USER.value,
                created_at=created_at or datetime.now(timezone.utc),
                last_login=last_login,
            )
            self.session.add(user)
            try:
                await self.session.flush()
                return user, True
            except IntegrityError:
                logger.info("Concurrent first login for %s; refreshing instead", email)
                await self.session.rollback()
                user = await self.get_by_email(email)
                if user is None:
                    raise

        user.last_login = last_login
        await self.session.flush()
        return user, False

    async def set_role(self, email: str, role: UserRole) -> int:
        """Returns the number of matched users (0 or 1)."""
        result = await self.session.execute(
            update(User)
            .where(User.email == email)
            .values(role=role.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
