"""
ParcelFlow Backend — Cashout Service Tests
============================================

What:  Tests for the one-payout-per-delivered-parcel rule.

What we test:
    ✅ Cashout copies the parcel's earning and tracking details
    ✅ A second cashout for the same parcel conflicts, also when both race
    ✅ Undelivered or foreign parcels cannot be cashed out
    ✅ Riders list only their own cashouts
"""

import asyncio
import uuid

import pytest
from sqlalchemy import select

from parcelflow.authorization import Principal
from parcelflow.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from parcelflow.lifecycle import DeliveryStatus, UserRole
from parcelflow.models.cashout import Cashout
from parcelflow.services.cashout_service import CashoutService

from conftest import ADMIN_EMAIL, OTHER_RIDER_EMAIL, RIDER_EMAIL, add_parcel, add_rider


async def delivered_parcel(db_session, earning=800.0, rider_email=RIDER_EMAIL):
    rider = await add_rider(db_session, email=rider_email)
    return await add_parcel(
        db_session,
        delivery_status=DeliveryStatus.DELIVERED.value,
        assigned_rider_id=rider.id,
        assigned_rider_name=rider.name,
        assigned_rider_email=rider.email,
        rider_earning=earning,
    )


class TestCashout:

    def setup_method(self):
        self.service = CashoutService()

    @pytest.mark.asyncio
    async def test_cashout_records_earning(self, db_session):
        parcel = await delivered_parcel(db_session)

        cashout = await self.service.cashout(db_session, parcel.id, RIDER_EMAIL)

        assert cashout.earning == pytest.approx(800.0)
        assert cashout.parcel_id == parcel.id
        assert cashout.tracking_id == parcel.tracking_id
        assert cashout.parcel_name == "Books"
        assert cashout.rider_email == RIDER_EMAIL

    @pytest.mark.asyncio
    async def test_second_cashout_conflicts(self, db_session):
        parcel = await delivered_parcel(db_session)
        parcel_id = parcel.id
        await self.service.cashout(db_session, parcel_id, RIDER_EMAIL)
        await db_session.commit()

        with pytest.raises(ConflictError) as exc_info:
            await self.service.cashout(db_session, parcel_id, RIDER_EMAIL)
        assert exc_info.value.message == "Already cashed out"

    @pytest.mark.asyncio
    async def test_undelivered_parcel(self, db_session):
        rider = await add_rider(db_session)
        parcel = await add_parcel(
            db_session,
            delivery_status=DeliveryStatus.ON_THE_WAY.value,
            assigned_rider_id=rider.id,
            assigned_rider_email=rider.email,
        )

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.cashout(db_session, parcel.id, RIDER_EMAIL)
        assert exc_info.value.message == "Parcel not found or not delivered"

    @pytest.mark.asyncio
    async def test_other_riders_parcel(self, db_session):
        parcel = await delivered_parcel(db_session)

        with pytest.raises(NotFoundError):
            await self.service.cashout(db_session, parcel.id, OTHER_RIDER_EMAIL)

    @pytest.mark.asyncio
    async def test_unknown_parcel(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.cashout(db_session, uuid.uuid4(), RIDER_EMAIL)


class TestConcurrentCashout:

    def setup_method(self):
        self.service = CashoutService()

    async def _cash_out(self, factory, parcel_id):
        async with factory() as session:
            try:
                cashout = await self.service.cashout(session, parcel_id, RIDER_EMAIL)
                await session.commit()
                return cashout
            except ConflictError as e:
                return e

    @pytest.mark.asyncio
    async def test_simultaneous_cashouts_pay_once(self, file_session_factory):
        async with file_session_factory() as session:
            parcel = await delivered_parcel(session)
            parcel_id = parcel.id

        results = await asyncio.gather(
            self._cash_out(file_session_factory, parcel_id),
            self._cash_out(file_session_factory, parcel_id),
        )

        paid = [r for r in results if isinstance(r, Cashout)]
        rejected = [r for r in results if isinstance(r, ConflictError)]
        assert len(paid) == 1
        assert len(rejected) == 1
        assert rejected[0].message == "Already cashed out"

        async with file_session_factory() as session:
            result = await session.execute(select(Cashout).where(Cashout.parcel_id == parcel_id))
            rows = result.scalars().all()
        assert len(rows) == 1
        assert rows[0].earning == pytest.approx(800.0)


class TestListCashouts:

    def setup_method(self):
        self.service = CashoutService()

    @pytest.mark.asyncio
    async def test_rider_lists_own(self, db_session):
        parcel = await delivered_parcel(db_session)
        await self.service.cashout(db_session, parcel.id, RIDER_EMAIL)
        await db_session.commit()

        cashouts = await self.service.list_cashouts(
            db_session, Principal(email=RIDER_EMAIL, role=UserRole.RIDER), RIDER_EMAIL,
        )

        assert [c.parcel_id for c in cashouts] == [parcel.id]

    @pytest.mark.asyncio
    async def test_rider_cannot_list_others(self, db_session):
        with pytest.raises(ForbiddenError):
            await self.service.list_cashouts(
                db_session, Principal(email=RIDER_EMAIL, role=UserRole.RIDER), OTHER_RIDER_EMAIL,
            )

    @pytest.mark.asyncio
    async def test_admin_lists_any(self, db_session):
        admin = Principal(email=ADMIN_EMAIL, role=UserRole.ADMIN)
        assert await self.service.list_cashouts(db_session, admin, OTHER_RIDER_EMAIL) == []

    @pytest.mark.asyncio
    async def test_rider_email_required(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.list_cashouts(mock_db_session, Principal(email=RIDER_EMAIL), None)
