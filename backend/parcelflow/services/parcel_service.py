"""
ParcelFlow Backend — Parcel Service (Lifecycle Manager)
=========================================================

What:  Owns every change to a parcel's delivery status, plus parcel CRUD.
Who:   Called by the /parcels and /rider/parcels route handlers.

Transition flow:
    Assign   pending|assigned ──▶ assigned     (admin; approved rider only)
    Pick     assigned         ──▶ on_the_way   (assigned rider, or admin)
    Deliver  on_the_way       ──▶ delivered    (assigned rider; earning written)

    Each transition is a single conditional UPDATE. When it matches no row
    the parcel is re-read to report why: absent → NotFoundError, present in a
    state the table does not allow → ConflictError.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, any_of, authorize, has_role, is_self
from parcelflow.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
    database_errors,
)
from parcelflow.lifecycle import (
    DELIVERY_TRANSITIONS,
    DeliveryStatus,
    PaymentStatus,
    RiderStatus,
    UserRole,
    ensure_transition,
)
from parcelflow.models.parcel import Parcel
from parcelflow.models.rider import Rider
from parcelflow.pricing import compute_rider_earning
from parcelflow.repositories.ledgers import CashoutRepository, PaymentRepository
from parcelflow.repositories.parcels import ParcelRepository
from parcelflow.repositories.riders import RiderRepository
from parcelflow.schemas.parcel import ParcelCreate

logger = logging.getLogger(__name__)


def generate_tracking_id() -> str:
    """TRK- followed by ten uppercase hex digits, e.g. TRK-3F9A0C17B2."""
    return "TRK-" + uuid.uuid4().hex[:10].upper()


class ParcelService:
    """
    Business logic for the Parcel Lifecycle Store.

    Methods return ORM rows; routes serialize them with ParcelResponse.
    """

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create_parcel(
        self, db: AsyncSession, payload: ParcelCreate, creator_email: str
    ) -> Parcel:
        fields = payload.model_dump(exclude={"tracking_id"})
        parcel = Parcel(
            **fields,
            tracking_id=payload.tracking_id or generate_tracking_id(),
            created_by=creator_email,
            payment_status=PaymentStatus.UNPAID.value,
            delivery_status=DeliveryStatus.PENDING.value,
        )

        with database_errors("create parcel"):
            try:
                await ParcelRepository(db).add(parcel)
            except IntegrityError:
                await db.rollback()
                raise ConflictError(
                    message="Tracking ID already in use",
                    context={"tracking_id": parcel.tracking_id},
                )

        logger.info("Parcel %s created by %s (tracking=%s)", parcel.id, creator_email, parcel.tracking_id)
        return parcel

    async def get_parcel(self, db: AsyncSession, parcel_id: uuid.UUID) -> Parcel:
        with database_errors("get parcel", parcel_id=str(parcel_id)):
            parcel = await ParcelRepository(db).get(parcel_id)
        if parcel is None:
            raise NotFoundError(resource="parcel", resource_id=str(parcel_id), message="Parcel not found")
        return parcel

    async def list_parcels(
        self,
        db: AsyncSession,
        principal: Principal,
        email: Optional[str] = None,
        payment_status: Optional[PaymentStatus] = None,
        delivery_status: Optional[DeliveryStatus] = None,
    ) -> List[Parcel]:
        """
        Admins may list every parcel or filter by creator; everyone else
        lists only the parcels they created.
        """
        if not principal.is_admin:
            authorize(principal, is_self(email or principal.email))
            email = principal.email

        with database_errors("list parcels"):
            return await ParcelRepository(db).list(
                created_by=email,
                payment_status=payment_status,
                delivery_status=delivery_status,
            )

    async def delete_parcel(
        self, db: AsyncSession, parcel_id: uuid.UUID, principal: Principal
    ) -> None:
        """
        Admins delete any parcel without ledger rows. A creator deletes their
        own parcel only while it is still unpaid and pending.
        """
        repo = ParcelRepository(db)
        with database_errors("delete parcel", parcel_id=str(parcel_id)):
            parcel = await repo.get(parcel_id)
            if parcel is None:
                raise NotFoundError(resource="parcel", resource_id=str(parcel_id), message="Parcel not found")

            authorize(principal, any_of(has_role(UserRole.ADMIN), is_self(parcel.created_by)))

            if (
                await PaymentRepository(db).exists_for_parcel(parcel_id)
                or await CashoutRepository(db).get_by_parcel(parcel_id) is not None
            ):
                raise ConflictError(
                    message="Parcel has ledger records and cannot be deleted",
                    context={"parcel_id": str(parcel_id)},
                )

            try:
                deleted = await repo.delete(parcel_id, unclaimed_only=not principal.is_admin)
            except IntegrityError:
                await db.rollback()
                raise ConflictError(
                    message="Parcel has ledger records and cannot be deleted",
                    context={"parcel_id": str(parcel_id)},
                )

        if not deleted:
            logger.warning("Delete of parcel %s by %s refused: no longer unpaid/pending", parcel_id, principal.email)
            raise ConflictError(
                message="Only unpaid, pending parcels can be deleted",
                context={"parcel_id": str(parcel_id)},
            )
        # The bulk DELETE bypasses the identity map
        db.expunge(parcel)
        logger.info("Parcel %s deleted by %s", parcel_id, principal.email)

    # ── Transitions ───────────────────────────────────────────────────────

    async def _explain_missed_transition(
        self, repo: ParcelRepository, parcel_id: uuid.UUID, target: DeliveryStatus
    ) -> None:
        """Raises the error for a conditional update that matched no row."""
        parcel = await repo.get(parcel_id, refresh=True)
        if parcel is None:
            raise NotFoundError(resource="parcel", resource_id=str(parcel_id), message="Parcel not found")
        logger.warning(
            "Parcel %s: transition %s → %s rejected",
            parcel_id, parcel.delivery_status, target.value,
        )
        ensure_transition(
            DELIVERY_TRANSITIONS, DeliveryStatus(parcel.delivery_status), target, entity="parcel",
        )
        # State allows it, so another precondition (rider, earning) failed.
        raise ConflictError(
            message="Parcel was changed by another request",
            context={"parcel_id": str(parcel_id), "target": target.value},
        )

    async def assign(
        self, db: AsyncSession, parcel_id: uuid.UUID, rider_id: uuid.UUID
    ) -> Parcel:
        """Assign: copies the rider's name/email/phone onto the parcel."""
        repo = ParcelRepository(db)
        with database_errors("assign rider", parcel_id=str(parcel_id)):
            rider = await RiderRepository(db).get(rider_id)
            if rider is None:
                raise NotFoundError(resource="rider", resource_id=str(rider_id), message="Rider not found")
            if rider.status != RiderStatus.APPROVED.value:
                raise ConflictError(
                    message="Rider is not approved",
                    context={"rider_id": str(rider_id), "status": rider.status},
                )

            if not await repo.assign_rider(parcel_id, rider):
                await self._explain_missed_transition(repo, parcel_id, DeliveryStatus.ASSIGNED)

            parcel = await repo.get(parcel_id, refresh=True)

        logger.info("Parcel %s assigned to rider %s (%s)", parcel_id, rider.id, rider.email)
        return parcel

    async def pick(
        self, db: AsyncSession, parcel_id: uuid.UUID, principal: Principal
    ) -> Parcel:
        """
        Pick: assigned → on_the_way. Admins may mark any parcel picked; a
        rider only a parcel assigned to them.
        """
        rider_id = None
        if not principal.is_admin:
            rider = await self._rider_for(db, principal.email)
            rider_id = rider.id

        repo = ParcelRepository(db)
        with database_errors("pick parcel", parcel_id=str(parcel_id)):
            if not await repo.mark_picked(parcel_id, rider_id=rider_id):
                if rider_id is not None and await repo.get_for_rider(parcel_id, rider_id=rider_id) is None:
                    raise NotFoundError(
                        resource="parcel",
                        resource_id=str(parcel_id),
                        message="Parcel not found or not assigned to you",
                    )
                await self._explain_missed_transition(repo, parcel_id, DeliveryStatus.ON_THE_WAY)
            parcel = await repo.get(parcel_id, refresh=True)

        logger.info("Parcel %s picked up (by %s)", parcel_id, principal.email)
        return parcel

    async def deliver(
        self, db: AsyncSession, parcel_id: uuid.UUID, rider_email: str
    ) -> Parcel:
        """
        Deliver: on_the_way → delivered for the rider the parcel is assigned
        to. rider_earning is computed from cost and districts and written by
        the same UPDATE, so it is set exactly once.
        """
        rider = await self._rider_for(db, rider_email)
        repo = ParcelRepository(db)

        with database_errors("deliver parcel", parcel_id=str(parcel_id)):
            parcel = await repo.get_for_rider(parcel_id, rider_id=rider.id)
            if parcel is None:
                raise NotFoundError(
                    resource="parcel",
                    resource_id=str(parcel_id),
                    message="Parcel not found or not assigned to you",
                )

            earning = compute_rider_earning(parcel.cost, parcel.sender_district, parcel.receiver_district)
            if not await repo.mark_delivered(parcel_id, rider.id, earning):
                await self._explain_missed_transition(repo, parcel_id, DeliveryStatus.DELIVERED)
            parcel = await repo.get(parcel_id, refresh=True)

        logger.info("Parcel %s delivered by %s (earning=%.2f)", parcel_id, rider_email, earning)
        return parcel

    async def update_status_by_rider(
        self,
        db: AsyncSession,
        parcel_id: uuid.UUID,
        rider_email: str,
        target: DeliveryStatus,
    ) -> Parcel:
        """PATCH /rider/parcels/{id}/status: pickup or delivery by the rider."""
        if target == DeliveryStatus.DELIVERED:
            return await self.deliver(db, parcel_id, rider_email)
        if target == DeliveryStatus.ON_THE_WAY:
            return await self.pick(db, parcel_id, Principal(email=rider_email, role=UserRole.RIDER))
        raise ValidationError(
            message=f"Riders cannot set delivery status '{target.value}'",
            field="delivery_status",
        )

    async def list_rider_parcels(self, db: AsyncSession, rider_email: str) -> List[Parcel]:
        rider = await self._rider_for(db, rider_email)
        with database_errors("list rider parcels"):
            return await ParcelRepository(db).list_for_rider(rider.id)

    async def _rider_for(self, db: AsyncSession, email: str) -> Rider:
        with database_errors("rider lookup", email=email):
            rider = await RiderRepository(db).get_by_email(email)
        if rider is None:
            raise NotFoundError(resource="rider", message="Rider not found")
        return rider


# ── Singleton Instance ────────────────────────────────────────────────────
parcel_service = ParcelService()
