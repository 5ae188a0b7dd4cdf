import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentCreate(BaseModel):
    """
    Body of POST /payments.

    Fields are optional here so that a missing one is reported by the service
    as a 400 "Missing payment information" instead of a schema error.
    `amount` is in minor currency units, as reported by the card gateway.
    """
    model_config = ConfigDict(populate_by_name=True)

    parcel_id: Optional[uuid.UUID] = Field(default=None, alias="parcelId")
    email: Optional[str] = None
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    amount: Optional[float] = None
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    payment_time: Optional[datetime] = Field(default=None, alias="paymentTime")


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    parcel_id: uuid.UUID
    email: str
    transaction_id: str
    amount: float = Field(description="Major currency units")
    payment_method: Optional[str] = None
    paid_at: datetime
    payment_time: datetime


class PaymentIntentRequest(BaseModel):
    amount: float = Field(description="Amount in major currency units")


class PaymentIntentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_secret: str = Field(alias="clientSecret")
    amount: int = Field(description="Minor currency units sent to the gateway")
    currency: str
