import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from parcelflow.lifecycle import RiderStatus


class RiderApplication(BaseModel):
    """Body of POST /riders. The applicant's email is taken from the credential."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    age: Optional[int] = Field(default=None, ge=16, le=100)
    region: Optional[str] = Field(default=None, max_length=120)
    district: Optional[str] = Field(default=None, max_length=120)
    national_id: Optional[str] = Field(default=None, alias="nid", max_length=64)
    bike_brand: Optional[str] = Field(default=None, alias="bikeBrand", max_length=120)
    bike_registration: Optional[str] = Field(default=None, alias="bikeRegistration", max_length=64)


class RiderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
    age: Optional[int] = None
    region: Optional[str] = None
    district: Optional[str] = None
    national_id: Optional[str] = None
    bike_brand: Optional[str] = None
    bike_registration: Optional[str] = None
    status: str
    created_at: datetime
    reviewed_at: Optional[datetime] = None


class RiderSummary(BaseModel):
    """Projection used when picking a rider for assignment."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    phone: Optional[str] = None
    district: Optional[str] = None
    region: Optional[str] = None


class RiderReview(BaseModel):
    """
    Body of PATCH /riders/{id}/status.

    `email` is accepted for compatibility with older clients; the role
    promotion always targets the email stored on the rider application.
    """
    status: RiderStatus
    email: Optional[str] = None
