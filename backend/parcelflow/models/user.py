"""
ParcelFlow Backend — User (Identity & Role Store)
===================================================

What:  ORM model for the `users` table: one row per verified email, with the
       role consulted by the authorization gate.
When:  Upserted on every client login (POST /users); the role is changed by
       admins and by rider approval.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from parcelflow.database import Base
from parcelflow.lifecycle import UserRole


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Lookup key for every authorization check
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.USER.value,
        comment="user, rider, admin",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Refreshed on every login upsert
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User(email='{self.email}', role='{self.role}')>"
