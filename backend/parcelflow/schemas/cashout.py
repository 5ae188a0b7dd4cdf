import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CashoutRequest(BaseModel):
    """Body of POST /rider/cashout."""
    model_config = ConfigDict(populate_by_name=True)

    parcel_id: uuid.UUID = Field(alias="parcelId")


class CashoutResponse(BaseModel):
    """Essential cashout fields, as listed to the rider."""
    model_config = ConfigDict(from_attributes=True)

    parcel_id: uuid.UUID
    tracking_id: Optional[str] = None
    parcel_name: Optional[str] = None
    earning: float
    cashed_out_at: datetime
