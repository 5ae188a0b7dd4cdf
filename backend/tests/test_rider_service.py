"""
ParcelFlow Backend — Rider Service Tests
==========================================

What:  Tests for rider applications and the one-time admin review.

What we test:
    ✅ Applications start pending; one per email
    ✅ Approval promotes the user's role to rider in the same transaction
    ✅ Approval without a user row is rolled back entirely
    ✅ A reviewed application cannot be reviewed again
    ✅ Status filter parsing ('available' alias, unknown values)
"""

import uuid

import pytest

from parcelflow.exceptions import ConflictError, NotFoundError, ValidationError
from parcelflow.lifecycle import RiderStatus, UserRole
from parcelflow.repositories.riders import RiderRepository
from parcelflow.repositories.users import UserRepository
from parcelflow.schemas.rider import RiderApplication
from parcelflow.services.rider_service import RiderService, parse_status_filter

from conftest import RIDER_EMAIL, add_rider, add_user


def application(**fields):
    body = {
        "name": "Rahim Uddin",
        "phone": "01700000000",
        "age": 27,
        "region": "Dhaka",
        "district": "Dhaka",
        "nid": "1990123456789",
        "bikeBrand": "Honda",
        "bikeRegistration": "DHA-1234",
    }
    body.update(fields)
    return RiderApplication(**body)


class TestStatusFilter:

    def test_available_means_approved(self):
        assert parse_status_filter("available") == RiderStatus.APPROVED

    def test_empty_means_no_filter(self):
        assert parse_status_filter(None) is None
        assert parse_status_filter("") is None

    def test_known_status(self):
        assert parse_status_filter("rejected") == RiderStatus.REJECTED

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            parse_status_filter("sleeping")


class TestRiderApplication:

    def setup_method(self):
        self.service = RiderService()

    @pytest.mark.asyncio
    async def test_apply_creates_pending_rider(self, db_session):
        rider = await self.service.apply(db_session, application(), RIDER_EMAIL)

        assert rider.status == RiderStatus.PENDING.value
        assert rider.email == RIDER_EMAIL
        assert rider.national_id == "1990123456789"
        assert rider.bike_brand == "Honda"

    @pytest.mark.asyncio
    async def test_second_application_conflicts(self, db_session):
        await self.service.apply(db_session, application(), RIDER_EMAIL)
        await db_session.commit()

        with pytest.raises(ConflictError):
            await self.service.apply(db_session, application(name="Again"), RIDER_EMAIL)

    @pytest.mark.asyncio
    async def test_list_by_status(self, db_session):
        await add_rider(db_session, email="a@x.test", status=RiderStatus.PENDING)
        await add_rider(db_session, email="b@x.test", status=RiderStatus.APPROVED)

        pending = await self.service.list_riders(db_session, "pending")
        available = await self.service.list_riders(db_session, "available")
        everyone = await self.service.list_riders(db_session)

        assert [r.email for r in pending] == ["a@x.test"]
        assert [r.email for r in available] == ["b@x.test"]
        assert len(everyone) == 2


class TestRiderReview:

    def setup_method(self):
        self.service = RiderService()

    @pytest.mark.asyncio
    async def test_approve_promotes_user_role(self, db_session):
        await add_user(db_session, RIDER_EMAIL)
        rider = await add_rider(db_session, status=RiderStatus.PENDING)

        reviewed = await self.service.review(db_session, rider.id, RiderStatus.APPROVED)
        await db_session.commit()

        assert reviewed.status == RiderStatus.APPROVED.value
        assert reviewed.reviewed_at is not None
        user = await UserRepository(db_session).get_by_email(RIDER_EMAIL)
        await db_session.refresh(user)
        assert user.role == UserRole.RIDER.value

    @pytest.mark.asyncio
    async def test_reject_leaves_role_alone(self, db_session):
        await add_user(db_session, RIDER_EMAIL)
        rider = await add_rider(db_session, status=RiderStatus.PENDING)

        reviewed = await self.service.review(db_session, rider.id, RiderStatus.REJECTED)
        await db_session.commit()

        assert reviewed.status == RiderStatus.REJECTED.value
        user = await UserRepository(db_session).get_by_email(RIDER_EMAIL)
        assert user.role == UserRole.USER.value

    @pytest.mark.asyncio
    async def test_approve_without_user_rolls_back(self, db_session):
        rider = await add_rider(db_session, status=RiderStatus.PENDING)
        rider_id = rider.id

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.review(db_session, rider_id, RiderStatus.APPROVED)
        assert exc_info.value.context["email"] == RIDER_EMAIL

        stored = await RiderRepository(db_session).get(rider_id, refresh=True)
        assert stored.status == RiderStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_second_review_conflicts(self, db_session):
        await add_user(db_session, RIDER_EMAIL)
        rider = await add_rider(db_session, status=RiderStatus.PENDING)
        await self.service.review(db_session, rider.id, RiderStatus.APPROVED)
        await db_session.commit()

        with pytest.raises(ConflictError):
            await self.service.review(db_session, rider.id, RiderStatus.REJECTED)

    @pytest.mark.asyncio
    async def test_unknown_rider(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.review(db_session, uuid.uuid4(), RiderStatus.APPROVED)

    @pytest.mark.asyncio
    async def test_pending_is_not_a_decision(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.review(mock_db_session, uuid.uuid4(), RiderStatus.PENDING)
        mock_db_session.execute.assert_not_awaited()
