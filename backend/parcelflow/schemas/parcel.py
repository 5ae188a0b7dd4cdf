"""
ParcelFlow Backend — Parcel Request/Response Schemas
======================================================

What:  API contracts for parcel creation, lifecycle transitions and listing.
How:   Request bodies accept the original camelCase keys (riderId, trackingId,
       parcelName, ...) as well as snake_case; responses are snake_case.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from parcelflow.lifecycle import DeliveryStatus


class ParcelCreate(BaseModel):
    """Body of POST /parcels. The creator is always the authenticated caller."""
    model_config = ConfigDict(populate_by_name=True)

    tracking_id: Optional[str] = Field(default=None, alias="trackingId", max_length=32)
    parcel_name: Optional[str] = Field(default=None, alias="parcelName", max_length=255)
    parcel_type: Optional[str] = Field(default=None, alias="parcelType", max_length=50)
    weight: Optional[float] = Field(default=None, ge=0)
    sender_name: Optional[str] = Field(default=None, alias="senderName", max_length=255)
    sender_district: Optional[str] = Field(default=None, alias="senderDistrict", max_length=120)
    receiver_name: Optional[str] = Field(default=None, alias="receiverName", max_length=255)
    receiver_district: Optional[str] = Field(default=None, alias="receiverDistrict", max_length=120)
    cost: float = Field(ge=0, description="Delivery cost in major currency units")


class ParcelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tracking_id: str
    parcel_name: Optional[str] = None
    parcel_type: Optional[str] = None
    weight: Optional[float] = None
    created_by: str
    sender_name: Optional[str] = None
    sender_district: Optional[str] = None
    receiver_name: Optional[str] = None
    receiver_district: Optional[str] = None
    cost: float
    payment_status: str
    delivery_status: str
    assigned_rider_id: Optional[uuid.UUID] = None
    assigned_rider_name: Optional[str] = None
    assigned_rider_email: Optional[str] = None
    assigned_rider_phone: Optional[str] = None
    created_at: datetime
    assigned_at: Optional[datetime] = None
    picked_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    rider_earning: Optional[float] = None


class AssignRiderRequest(BaseModel):
    """Body of PATCH /parcels/{id}/assign."""
    model_config = ConfigDict(populate_by_name=True)

    rider_id: uuid.UUID = Field(alias="riderId")


class DeliveryStatusUpdate(BaseModel):
    """Body of PATCH /rider/parcels/{id}/status."""
    delivery_status: DeliveryStatus
