"""
ParcelFlow Backend — Cashout Service (Cashout Manager)
========================================================

What:  Pays a rider's earning for a delivered parcel, once.
How:   The parcel is read with every precondition in the WHERE clause
       (id, assigned rider email, delivered). The ledger insert then races on
       UNIQUE(cashouts.parcel_id): of two concurrent requests exactly one
       commits, the other gets ConflictError("Already cashed out").
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, authorize, is_self
from parcelflow.exceptions import NotFoundError, ValidationError, database_errors
from parcelflow.lifecycle import DeliveryStatus
from parcelflow.models.cashout import Cashout
from parcelflow.repositories.ledgers import CashoutRepository
from parcelflow.repositories.parcels import ParcelRepository

logger = logging.getLogger(__name__)


class CashoutService:

    async def cashout(self, db: AsyncSession, parcel_id: uuid.UUID, rider_email: str) -> Cashout:
        with database_errors("cashout", parcel_id=str(parcel_id)):
            parcel = await ParcelRepository(db).get_for_rider(
                parcel_id,
                rider_email=rider_email,
                delivery_status=DeliveryStatus.DELIVERED,
            )
            if parcel is None:
                raise NotFoundError(
                    resource="parcel",
                    resource_id=str(parcel_id),
                    message="Parcel not found or not delivered",
                )

            cashout = await CashoutRepository(db).add(
                Cashout(
                    parcel_id=parcel.id,
                    rider_email=rider_email,
                    rider_name=parcel.assigned_rider_name,
                    earning=parcel.rider_earning or 0.0,
                    tracking_id=parcel.tracking_id,
                    parcel_name=parcel.parcel_name,
                    cashed_out_at=datetime.now(timezone.utc),
                )
            )

        logger.info("Cashout for parcel %s: %.2f to %s", parcel_id, cashout.earning, rider_email)
        return cashout

    async def list_cashouts(
        self, db: AsyncSession, principal: Principal, rider_email: Optional[str]
    ) -> List[Cashout]:
        """ListCashouts(riderEmail). Riders read their own; admins anyone's."""
        if not rider_email:
            raise ValidationError(message="Missing rider_email", field="rider_email")
        if not principal.is_admin:
            authorize(principal, is_self(rider_email))

        with database_errors("list cashouts"):
            return await CashoutRepository(db).list_for_rider(rider_email)


# ── Singleton Instance ────────────────────────────────────────────────────
cashout_service = CashoutService()
