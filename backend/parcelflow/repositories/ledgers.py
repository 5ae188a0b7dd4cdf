"""
ParcelFlow Backend — Ledger Repositories (payments, cashouts)
===============================================================

What:  Append-only inserts and reads for the two financial ledgers.
How:   Duplicates are rejected by unique constraints (payments.transaction_id,
       cashouts.parcel_id). The failing flush is rolled back and surfaced as
       ConflictError, so two concurrent requests cannot both insert.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.exceptions import ConflictError
from parcelflow.models.cashout import Cashout
from parcelflow.models.payment import Payment

logger = logging.getLogger(__name__)


async def _insert_once(session: AsyncSession, row, conflict_message: str, context: dict):
    session.add(row)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("%s | %s", conflict_message, context)
        raise ConflictError(message=conflict_message, context=context) from exc
    return row


class PaymentRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, payment: Payment) -> Payment:
        return await _insert_once(
            self.session,
            payment,
            "Payment already recorded",
            {"transaction_id": payment.transaction_id},
        )

    async def list(self, email: Optional[str] = None) -> List[Payment]:
        """Latest first."""
        query = select(Payment)
        if email:
            query = query.where(Payment.email == email)
        result = await self.session.execute(query.order_by(desc(Payment.payment_time)))
        return list(result.scalars().all())

    async def exists_for_parcel(self, parcel_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            select(Payment.id).where(Payment.parcel_id == parcel_id).limit(1)
        )
        return result.first() is not None


class CashoutRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, cashout: Cashout) -> Cashout:
        return await _insert_once(
            self.session,
            cashout,
            "Already cashed out",
            {"parcel_id": str(cashout.parcel_id)},
        )

    async def get_by_parcel(self, parcel_id: uuid.UUID) -> Optional[Cashout]:
        result = await self.session.execute(
            select(Cashout).where(Cashout.parcel_id == parcel_id)
        )
        return result.scalar_one_or_none()

    async def list_for_rider(self, rider_email: str) -> List[Cashout]:
        result = await self.session.execute(
            select(Cashout)
            .where(Cashout.rider_email == rider_email)
            .order_by(desc(Cashout.cashed_out_at))
        )
        return list(result.scalars().all())
