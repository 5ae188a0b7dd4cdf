"""
ParcelFlow Backend — Rider Service (Rider Approval Manager)
=============================================================

What:  Rider applications, admin listings, and the one-time review decision.

Approval:
    pending → approved   also promotes users.role to 'rider'
    pending → rejected   terminal; the application is kept for the record

    The status UPDATE and the role UPDATE run in the request's transaction.
    If the applicant has no user row both writes are rolled back and the
    service raises NotFoundError, so a rider is never approved without the
    matching role.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.exceptions import ConflictError, NotFoundError, ValidationError, database_errors
from parcelflow.lifecycle import RIDER_TRANSITIONS, RiderStatus, UserRole, ensure_transition
from parcelflow.models.rider import Rider
from parcelflow.repositories.riders import RiderRepository
from parcelflow.repositories.users import UserRepository
from parcelflow.schemas.rider import RiderApplication

logger = logging.getLogger(__name__)

# Query alias kept from the dashboard's "available riders" picker
AVAILABLE_ALIAS = "available"


def parse_status_filter(status: Optional[str]) -> Optional[RiderStatus]:
    """'available' → approved; empty → no filter; unknown → ValidationError."""
    if not status:
        return None
    if status == AVAILABLE_ALIAS:
        return RiderStatus.APPROVED
    try:
        return RiderStatus(status)
    except ValueError:
        raise ValidationError(message=f"Unknown rider status '{status}'", field="status")


class RiderService:

    async def apply(self, db: AsyncSession, application: RiderApplication, email: str) -> Rider:
        rider = Rider(
            **application.model_dump(),
            email=email,
            status=RiderStatus.PENDING.value,
        )
        with database_errors("rider application", email=email):
            try:
                await RiderRepository(db).add(rider)
            except IntegrityError:
                await db.rollback()
                raise ConflictError(
                    message="A rider application already exists for this email",
                    context={"email": email},
                )
        logger.info("Rider application %s received from %s", rider.id, email)
        return rider

    async def list_riders(self, db: AsyncSession, status: Optional[str] = None) -> List[Rider]:
        target = parse_status_filter(status)
        with database_errors("list riders"):
            return await RiderRepository(db).list_by_status(target)

    async def review(self, db: AsyncSession, rider_id: uuid.UUID, decision: RiderStatus) -> Rider:
        """
        Approve/Reject a pending application.

        Raises:
            ValidationError: decision is not approved/rejected
            NotFoundError:   rider absent, or (on approval) no user row for
                             the rider's email
            ConflictError:   the application was already reviewed
        """
        if decision not in RIDER_TRANSITIONS:
            raise ValidationError(
                message="Status must be 'approved' or 'rejected'",
                field="status",
            )

        riders = RiderRepository(db)
        with database_errors("review rider", rider_id=str(rider_id)):
            if not await riders.transition_status(rider_id, decision):
                rider = await riders.get(rider_id, refresh=True)
                if rider is None:
                    raise NotFoundError(resource="rider", resource_id=str(rider_id), message="Rider not found")
                logger.warning("Rider %s already reviewed (%s)", rider_id, rider.status)
                ensure_transition(RIDER_TRANSITIONS, RiderStatus(rider.status), decision, entity="rider")
                raise ConflictError(message="Rider was reviewed by another request")

            rider = await riders.get(rider_id, refresh=True)

            if decision == RiderStatus.APPROVED:
                promoted = await UserRepository(db).set_role(rider.email, UserRole.RIDER)
                if promoted == 0:
                    # Rollback expires `rider`; keep the email for the error
                    email = rider.email
                    logger.warning("Approval of rider %s aborted: no user %s", rider_id, email)
                    await db.rollback()
                    raise NotFoundError(
                        resource="user",
                        message="No user account for this rider's email",
                        context={"email": email},
                    )

        logger.info("Rider %s (%s) %s", rider_id, rider.email, decision.value)
        return rider


# ── Singleton Instance ────────────────────────────────────────────────────
rider_service = RiderService()
