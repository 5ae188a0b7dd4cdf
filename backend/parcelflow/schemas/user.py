import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from parcelflow.lifecycle import UserRole


class UserUpsert(BaseModel):
    """
    Body of POST /users, sent by the client after every sign-in.

    name, photoURL and created_at are applied only when the user is first
    inserted; last_login is refreshed every time. New users always start with
    the user role.
    """
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=3, max_length=320)
    name: Optional[str] = Field(default=None, max_length=255)
    photo_url: Optional[str] = Field(default=None, alias="photoURL", max_length=1024)
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    role: str
    created_at: datetime
    last_login: Optional[datetime] = None


class UserSummary(BaseModel):
    """Projection returned by the admin search."""
    model_config = ConfigDict(from_attributes=True)

    email: str
    role: str
    created_at: datetime


class RoleResponse(BaseModel):
    email: str
    role: str


class RoleUpdate(BaseModel):
    role: UserRole
