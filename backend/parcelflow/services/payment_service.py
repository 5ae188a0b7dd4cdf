"""
ParcelFlow Backend — Payment Service
======================================

What:  RecordPayment (parcel unpaid → paid + payment ledger row), payment
       history, and payment-intent creation through the card gateway.

Units:
    The browser creates the intent in major units (500.50 BDT); the gateway
    charges minor units (50050); the confirmation the client posts back
    carries minor units again, and the ledger stores major units (500.5).

Transaction:
    mark_paid and the ledger insert share the request session. If the insert
    fails (replayed transaction id) the whole request rolls back, so a parcel
    is never paid without its ledger row.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.authorization import Principal, authorize, is_self
from parcelflow.exceptions import ConflictError, NotFoundError, ValidationError, database_errors
from parcelflow.lifecycle import PAYMENT_TRANSITIONS, PaymentStatus, ensure_transition
from parcelflow.models.payment import Payment
from parcelflow.pricing import to_major_units, to_minor_units
from parcelflow.repositories.ledgers import PaymentRepository
from parcelflow.repositories.parcels import ParcelRepository
from parcelflow.schemas.payment import PaymentCreate
from parcelflow.services.gateway_base import PaymentGateway, PaymentIntent

logger = logging.getLogger(__name__)

REQUIRED_PAYMENT_FIELDS = ("parcel_id", "email", "transaction_id", "amount")


class PaymentService:

    async def record_payment(self, db: AsyncSession, payload: PaymentCreate) -> Payment:
        """
        RecordPayment: marks the parcel paid and appends the ledger entry.

        Raises:
            ValidationError: a required field is missing or the amount is not
                             positive
            NotFoundError:   the parcel does not exist
            ConflictError:   the parcel is already paid, or the transaction
                             id was recorded before
        """
        missing = [name for name in REQUIRED_PAYMENT_FIELDS if not getattr(payload, name)]
        if missing:
            raise ValidationError(
                message="Missing payment information",
                context={"missing": missing},
            )
        if payload.amount <= 0:
            raise ValidationError(message="Amount must be greater than zero", field="amount")

        parcels = ParcelRepository(db)
        with database_errors("record payment", parcel_id=str(payload.parcel_id)):
            if not await parcels.mark_paid(payload.parcel_id):
                parcel = await parcels.get(payload.parcel_id, refresh=True)
                if parcel is None:
                    raise NotFoundError(
                        resource="parcel",
                        resource_id=str(payload.parcel_id),
                        message="Parcel not found",
                    )
                logger.warning("Payment %s for already-paid parcel %s", payload.transaction_id, parcel.id)
                ensure_transition(
                    PAYMENT_TRANSITIONS,
                    PaymentStatus(parcel.payment_status),
                    PaymentStatus.PAID,
                    entity="payment status",
                )
                raise ConflictError(message="Parcel payment changed concurrently")

            payment = await PaymentRepository(db).add(
                Payment(
                    parcel_id=payload.parcel_id,
                    email=payload.email,
                    transaction_id=payload.transaction_id,
                    amount=to_major_units(payload.amount),
                    payment_method=payload.payment_method,
                    paid_at=datetime.now(timezone.utc),
                    payment_time=payload.payment_time or datetime.now(timezone.utc),
                )
            )

        logger.info(
            "Payment recorded: parcel=%s txn=%s amount=%.2f",
            payload.parcel_id, payload.transaction_id, payment.amount,
        )
        return payment

    async def list_payments(
        self, db: AsyncSession, principal: Principal, email: Optional[str] = None
    ) -> List[Payment]:
        """Latest first. Non-admins may only read their own history."""
        if not principal.is_admin:
            authorize(principal, is_self(email or principal.email))
            email = principal.email

        with database_errors("list payments"):
            return await PaymentRepository(db).list(email=email)

    async def create_payment_intent(self, gateway: PaymentGateway, amount: float) -> PaymentIntent:
        """
        Converts a major-unit amount to minor units and asks the gateway for
        an intent. Gateway failures propagate as PaymentGatewayError.
        """
        if amount is None or amount <= 0:
            raise ValidationError(message="Amount must be greater than zero", field="amount")

        minor = to_minor_units(amount)
        if minor <= 0:
            raise ValidationError(message="Amount is below the smallest currency unit", field="amount")

        return await gateway.create_payment_intent(minor)


# ── Singleton Instance ────────────────────────────────────────────────────
payment_service = PaymentService()
