import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TrackingCreate(BaseModel):
    """Body of POST /tracking. `updated_by` defaults to the caller."""
    model_config = ConfigDict(populate_by_name=True)

    tracking_id: str = Field(alias="trackingId", min_length=1, max_length=32)
    parcel_id: Optional[uuid.UUID] = Field(default=None, alias="parcelId")
    status: str = Field(min_length=1, max_length=50)
    message: Optional[str] = None
    updated_by: Optional[str] = Field(default=None, max_length=320)


class TrackingEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tracking_id: str
    parcel_id: Optional[uuid.UUID] = None
    status: str
    message: Optional[str] = None
    updated_by: str
    time: datetime
