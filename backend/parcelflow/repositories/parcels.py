"""
ParcelFlow Backend — Parcel Repository
========================================

What:  Queries and lifecycle writes for the `parcels` table.
How:   Every transition is one UPDATE whose WHERE clause restates the
       precondition (source status, and for rider actions the assigned rider).
       `True` means this request performed the transition; `False` means the
       parcel is absent or another request already moved it. Callers reload
       the row with `get(..., refresh=True)` to tell those apart and to read
       the new state.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.lifecycle import (
    DELIVERY_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    RIDER_VISIBLE_STATUSES,
    DeliveryStatus,
    PaymentStatus,
    source_values,
)
from parcelflow.models.parcel import Parcel
from parcelflow.models.rider import Rider


class ParcelRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get(self, parcel_id: uuid.UUID, refresh: bool = False) -> Optional[Parcel]:
        return await self.session.get(Parcel, parcel_id, populate_existing=refresh)

    async def get_for_rider(
        self,
        parcel_id: uuid.UUID,
        rider_id: Optional[uuid.UUID] = None,
        rider_email: Optional[str] = None,
        delivery_status: Optional[DeliveryStatus] = None,
    ) -> Optional[Parcel]:
        query = select(Parcel).where(Parcel.id == parcel_id)
        if rider_id is not None:
            query = query.where(Parcel.assigned_rider_id == rider_id)
        if rider_email is not None:
            query = query.where(Parcel.assigned_rider_email == rider_email)
        if delivery_status is not None:
            query = query.where(Parcel.delivery_status == delivery_status.value)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def list(
        self,
        created_by: Optional[str] = None,
        payment_status: Optional[PaymentStatus] = None,
        delivery_status: Optional[DeliveryStatus] = None,
    ) -> List[Parcel]:
        """Filtered list, newest first."""
        query = select(Parcel)
        if created_by:
            query = query.where(Parcel.created_by == created_by)
        if payment_status is not None:
            query = query.where(Parcel.payment_status == payment_status.value)
        if delivery_status is not None:
            query = query.where(Parcel.delivery_status == delivery_status.value)
        query = query.order_by(desc(Parcel.created_at))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_for_rider(self, rider_id: uuid.UUID) -> List[Parcel]:
        result = await self.session.execute(
            select(Parcel)
            .where(
                Parcel.assigned_rider_id == rider_id,
                Parcel.delivery_status.in_([s.value for s in RIDER_VISIBLE_STATUSES]),
            )
            .order_by(desc(Parcel.created_at))
        )
        return list(result.scalars().all())

    # ── Inserts / deletes ─────────────────────────────────────────────────

    async def add(self, parcel: Parcel) -> Parcel:
        self.session.add(parcel)
        await self.session.flush()
        return parcel

    async def delete(self, parcel_id: uuid.UUID, unclaimed_only: bool = False) -> bool:
        """
        Deletes the parcel. With `unclaimed_only` the row must still be unpaid
        and pending when the statement runs.
        """
        statement = delete(Parcel).where(Parcel.id == parcel_id)
        if unclaimed_only:
            statement = statement.where(
                Parcel.payment_status == PaymentStatus.UNPAID.value,
                Parcel.delivery_status == DeliveryStatus.PENDING.value,
            )
        result = await self.session.execute(
            statement.execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ── Conditional transitions ───────────────────────────────────────────

    async def _transition(
        self,
        parcel_id: uuid.UUID,
        target: DeliveryStatus,
        values: Dict[str, Any],
        *criteria: Any,
    ) -> bool:
        result = await self.session.execute(
            update(Parcel)
            .where(
                Parcel.id == parcel_id,
                Parcel.delivery_status.in_(source_values(DELIVERY_TRANSITIONS, target)),
                *criteria,
            )
            .values(delivery_status=target.value, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def assign_rider(self, parcel_id: uuid.UUID, rider: Rider) -> bool:
        return await self._transition(
            parcel_id,
            DeliveryStatus.ASSIGNED,
            {
                "assigned_rider_id": rider.id,
                "assigned_rider_name": rider.name,
                "assigned_rider_email": rider.email,
                "assigned_rider_phone": rider.phone,
                "assigned_at": datetime.now(timezone.utc),
            },
        )

    async def mark_picked(
        self, parcel_id: uuid.UUID, rider_id: Optional[uuid.UUID] = None
    ) -> bool:
        criteria = []
        if rider_id is not None:
            criteria.append(Parcel.assigned_rider_id == rider_id)
        return await self._transition(
            parcel_id,
            DeliveryStatus.ON_THE_WAY,
            {"picked_at": datetime.now(timezone.utc)},
            *criteria,
        )

    async def mark_delivered(
        self, parcel_id: uuid.UUID, rider_id: uuid.UUID, rider_earning: float
    ) -> bool:
        """Enters 'delivered' and writes the earning in the same statement."""
        return await self._transition(
            parcel_id,
            DeliveryStatus.DELIVERED,
            {
                "delivered_at": datetime.now(timezone.utc),
                "rider_earning": rider_earning,
            },
            Parcel.assigned_rider_id == rider_id,
            Parcel.rider_earning.is_(None),
        )

    async def mark_paid(self, parcel_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            update(Parcel)
            .where(
                Parcel.id == parcel_id,
                Parcel.payment_status.in_(
                    source_values(PAYMENT_TRANSITIONS, PaymentStatus.PAID)
                ),
            )
            .values(payment_status=PaymentStatus.PAID.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
