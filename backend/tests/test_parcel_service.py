"""
ParcelFlow Backend — Parcel Service Tests
===========================================

What:  Tests for parcel CRUD and the assign → pick → deliver lifecycle.
How:   Runs ParcelService against the in-memory SQLite database, committing
       after each step the way one request per step would.

What we test:
    ✅ Creation defaults (unpaid, pending, generated tracking id)
    ✅ Assignment copies the rider and requires an approved rider
    ✅ Pickup only by the assigned rider; a second pickup conflicts
    ✅ Delivery writes the earning once (same vs cross district), even when
       two deliveries race
    ✅ Listing is scoped to the caller unless admin
    ✅ Deletion rules for creators and admins
"""

import asyncio
import uuid

import pytest

from parcelflow.authorization import Principal
from parcelflow.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from parcelflow.lifecycle import DeliveryStatus, PaymentStatus, RiderStatus, UserRole
from parcelflow.models.parcel import Parcel
from parcelflow.schemas.parcel import ParcelCreate
from parcelflow.services.parcel_service import ParcelService, generate_tracking_id

from conftest import (
    ADMIN_EMAIL,
    CUSTOMER_EMAIL,
    OTHER_RIDER_EMAIL,
    RIDER_EMAIL,
    add_parcel,
    add_rider,
)


ADMIN = Principal(email=ADMIN_EMAIL, role=UserRole.ADMIN)
CUSTOMER = Principal(email=CUSTOMER_EMAIL)
RIDER = Principal(email=RIDER_EMAIL, role=UserRole.RIDER)


class TestTrackingId:

    def test_format(self):
        tracking_id = generate_tracking_id()
        assert tracking_id.startswith("TRK-")
        suffix = tracking_id[4:]
        assert len(suffix) == 10
        assert suffix == suffix.upper()
        int(suffix, 16)

    def test_unique(self):
        assert len({generate_tracking_id() for _ in range(100)}) == 100


class TestParcelCrud:

    def setup_method(self):
        self.service = ParcelService()

    @pytest.mark.asyncio
    async def test_create_sets_initial_state(self, db_session):
        payload = ParcelCreate(parcelName="Laptop", cost=150, senderDistrict="Dhaka", receiverDistrict="Khulna")

        parcel = await self.service.create_parcel(db_session, payload, CUSTOMER_EMAIL)

        assert parcel.created_by == CUSTOMER_EMAIL
        assert parcel.payment_status == PaymentStatus.UNPAID.value
        assert parcel.delivery_status == DeliveryStatus.PENDING.value
        assert parcel.tracking_id.startswith("TRK-")
        assert parcel.rider_earning is None

    @pytest.mark.asyncio
    async def test_create_with_taken_tracking_id_conflicts(self, db_session):
        await add_parcel(db_session, tracking_id="TRK-TAKEN00001")

        with pytest.raises(ConflictError):
            await self.service.create_parcel(
                db_session, ParcelCreate(trackingId="TRK-TAKEN00001", cost=10), CUSTOMER_EMAIL,
            )

    @pytest.mark.asyncio
    async def test_get_missing_parcel(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_parcel(db_session, uuid.uuid4())
        assert exc_info.value.message == "Parcel not found"

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_caller(self, db_session):
        await add_parcel(db_session, created_by=CUSTOMER_EMAIL)
        await add_parcel(db_session, created_by="someone@x.test")

        own = await self.service.list_parcels(db_session, CUSTOMER)
        everything = await self.service.list_parcels(db_session, ADMIN)

        assert [p.created_by for p in own] == [CUSTOMER_EMAIL]
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_list_other_users_parcels_is_forbidden(self, db_session):
        with pytest.raises(ForbiddenError):
            await self.service.list_parcels(db_session, CUSTOMER, email="someone@x.test")

    @pytest.mark.asyncio
    async def test_admin_filters_by_status(self, db_session):
        await add_parcel(db_session, payment_status=PaymentStatus.PAID.value)
        await add_parcel(db_session)

        paid = await self.service.list_parcels(db_session, ADMIN, payment_status=PaymentStatus.PAID)

        assert len(paid) == 1
        assert paid[0].payment_status == "paid"

    @pytest.mark.asyncio
    async def test_creator_deletes_unpaid_pending_parcel(self, db_session):
        parcel = await add_parcel(db_session)
        parcel_id = parcel.id

        await self.service.delete_parcel(db_session, parcel_id, CUSTOMER)
        await db_session.commit()

        assert await db_session.get(Parcel, parcel_id) is None

    @pytest.mark.asyncio
    async def test_creator_cannot_delete_paid_parcel(self, db_session):
        parcel = await add_parcel(db_session, payment_status=PaymentStatus.PAID.value)

        with pytest.raises(ConflictError):
            await self.service.delete_parcel(db_session, parcel.id, CUSTOMER)

    @pytest.mark.asyncio
    async def test_admin_deletes_paid_parcel_without_ledger(self, db_session):
        parcel = await add_parcel(db_session, payment_status=PaymentStatus.PAID.value)

        await self.service.delete_parcel(db_session, parcel.id, ADMIN)

    @pytest.mark.asyncio
    async def test_stranger_cannot_delete(self, db_session):
        parcel = await add_parcel(db_session)

        with pytest.raises(ForbiddenError):
            await self.service.delete_parcel(db_session, parcel.id, Principal(email="someone@x.test"))

    @pytest.mark.asyncio
    async def test_delete_missing_parcel(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.delete_parcel(db_session, uuid.uuid4(), ADMIN)


class TestParcelLifecycle:

    def setup_method(self):
        self.service = ParcelService()

    async def _assigned_parcel(self, db_session, **fields):
        rider = await add_rider(db_session)
        parcel = await add_parcel(db_session, **fields)
        parcel = await self.service.assign(db_session, parcel.id, rider.id)
        await db_session.commit()
        return parcel, rider

    @pytest.mark.asyncio
    async def test_assign_copies_rider(self, db_session):
        parcel, rider = await self._assigned_parcel(db_session)

        assert parcel.delivery_status == DeliveryStatus.ASSIGNED.value
        assert parcel.assigned_rider_id == rider.id
        assert parcel.assigned_rider_name == rider.name
        assert parcel.assigned_rider_email == RIDER_EMAIL
        assert parcel.assigned_rider_phone == rider.phone
        assert parcel.assigned_at is not None

    @pytest.mark.asyncio
    async def test_reassign_before_pickup(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session)
        other = await add_rider(db_session, email=OTHER_RIDER_EMAIL, name="Karim", phone="01800000000")

        parcel = await self.service.assign(db_session, parcel.id, other.id)

        assert parcel.assigned_rider_email == OTHER_RIDER_EMAIL

    @pytest.mark.asyncio
    async def test_assign_unapproved_rider_conflicts(self, db_session):
        rider = await add_rider(db_session, status=RiderStatus.PENDING)
        parcel = await add_parcel(db_session)

        with pytest.raises(ConflictError) as exc_info:
            await self.service.assign(db_session, parcel.id, rider.id)
        assert exc_info.value.message == "Rider is not approved"

    @pytest.mark.asyncio
    async def test_assign_unknown_rider_or_parcel(self, db_session):
        rider = await add_rider(db_session)
        parcel = await add_parcel(db_session)

        with pytest.raises(NotFoundError):
            await self.service.assign(db_session, parcel.id, uuid.uuid4())
        with pytest.raises(NotFoundError):
            await self.service.assign(db_session, uuid.uuid4(), rider.id)

    @pytest.mark.asyncio
    async def test_pick_by_assigned_rider(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session)

        picked = await self.service.pick(db_session, parcel.id, RIDER)

        assert picked.delivery_status == DeliveryStatus.ON_THE_WAY.value
        assert picked.picked_at is not None

    @pytest.mark.asyncio
    async def test_second_pick_conflicts(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session)
        await self.service.pick(db_session, parcel.id, RIDER)
        await db_session.commit()

        with pytest.raises(ConflictError):
            await self.service.pick(db_session, parcel.id, RIDER)

    @pytest.mark.asyncio
    async def test_pick_by_other_rider_is_not_found(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session)
        await add_rider(db_session, email=OTHER_RIDER_EMAIL, name="Karim")

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.pick(db_session, parcel.id, Principal(email=OTHER_RIDER_EMAIL, role=UserRole.RIDER))
        assert exc_info.value.message == "Parcel not found or not assigned to you"

    @pytest.mark.asyncio
    async def test_pick_unassigned_parcel_conflicts_for_admin(self, db_session):
        parcel = await add_parcel(db_session)

        with pytest.raises(ConflictError):
            await self.service.pick(db_session, parcel.id, ADMIN)

    @pytest.mark.asyncio
    async def test_deliver_same_district_earns_eighty_percent(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session, cost=1000, sender_district="Dhaka", receiver_district="Dhaka")
        await self.service.pick(db_session, parcel.id, RIDER)
        await db_session.commit()

        delivered = await self.service.deliver(db_session, parcel.id, RIDER_EMAIL)

        assert delivered.delivery_status == DeliveryStatus.DELIVERED.value
        assert delivered.rider_earning == pytest.approx(800.0)
        assert delivered.delivered_at is not None

    @pytest.mark.asyncio
    async def test_deliver_cross_district_earns_thirty_percent(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session, cost=1000, sender_district="Dhaka", receiver_district="Sylhet")
        await self.service.pick(db_session, parcel.id, RIDER)
        await db_session.commit()

        delivered = await self.service.deliver(db_session, parcel.id, RIDER_EMAIL)

        assert delivered.rider_earning == pytest.approx(300.0)

    @pytest.mark.asyncio
    async def test_deliver_before_pickup_conflicts(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session)
        parcel_id = parcel.id

        with pytest.raises(ConflictError):
            await self.service.deliver(db_session, parcel_id, RIDER_EMAIL)

        refreshed = await self.service.get_parcel(db_session, parcel_id)
        assert refreshed.rider_earning is None

    @pytest.mark.asyncio
    async def test_second_delivery_conflicts_and_keeps_earning(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session, cost=500)
        parcel_id = parcel.id
        await self.service.pick(db_session, parcel_id, RIDER)
        await self.service.deliver(db_session, parcel_id, RIDER_EMAIL)
        await db_session.commit()

        with pytest.raises(ConflictError):
            await self.service.deliver(db_session, parcel_id, RIDER_EMAIL)

        refreshed = await self.service.get_parcel(db_session, parcel_id)
        assert refreshed.rider_earning == pytest.approx(400.0)

    @pytest.mark.asyncio
    async def test_non_rider_cannot_deliver(self, db_session):
        parcel = await add_parcel(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.deliver(db_session, parcel.id, CUSTOMER_EMAIL)
        assert exc_info.value.message == "Rider not found"

    @pytest.mark.asyncio
    async def test_rider_status_update_dispatches(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session)

        picked = await self.service.update_status_by_rider(db_session, parcel.id, RIDER_EMAIL, DeliveryStatus.ON_THE_WAY)
        assert picked.delivery_status == "on_the_way"

        delivered = await self.service.update_status_by_rider(db_session, parcel.id, RIDER_EMAIL, DeliveryStatus.DELIVERED)
        assert delivered.delivery_status == "delivered"

    @pytest.mark.asyncio
    async def test_rider_cannot_set_assigned(self, db_session):
        parcel, _ = await self._assigned_parcel(db_session)

        with pytest.raises(ValidationError):
            await self.service.update_status_by_rider(db_session, parcel.id, RIDER_EMAIL, DeliveryStatus.ASSIGNED)

    @pytest.mark.asyncio
    async def test_rider_board_lists_only_own_active_parcels(self, db_session):
        parcel, rider = await self._assigned_parcel(db_session)
        await add_parcel(db_session)  # pending, unassigned

        board = await self.service.list_rider_parcels(db_session, RIDER_EMAIL)

        assert [p.id for p in board] == [parcel.id]


class TestConcurrentDelivery:

    def setup_method(self):
        self.service = ParcelService()

    async def _deliver(self, factory, parcel_id):
        async with factory() as session:
            try:
                parcel = await self.service.deliver(session, parcel_id, RIDER_EMAIL)
                await session.commit()
                return parcel
            except ConflictError as e:
                return e

    @pytest.mark.asyncio
    async def test_simultaneous_deliveries_write_earning_once(self, file_session_factory):
        async with file_session_factory() as session:
            rider = await add_rider(session)
            parcel = await add_parcel(session, cost=1000, receiver_district="Sylhet")
            parcel_id = parcel.id
            await self.service.assign(session, parcel_id, rider.id)
            await self.service.pick(session, parcel_id, RIDER)
            await session.commit()

        results = await asyncio.gather(
            self._deliver(file_session_factory, parcel_id),
            self._deliver(file_session_factory, parcel_id),
        )

        delivered = [r for r in results if isinstance(r, Parcel)]
        rejected = [r for r in results if isinstance(r, ConflictError)]
        assert len(delivered) == 1
        assert len(rejected) == 1
        assert delivered[0].rider_earning == pytest.approx(300.0)

        async with file_session_factory() as session:
            stored = await self.service.get_parcel(session, parcel_id)
            assert stored.delivery_status == DeliveryStatus.DELIVERED.value
            assert stored.rider_earning == pytest.approx(300.0)
