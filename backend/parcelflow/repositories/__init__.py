"""
ParcelFlow Backend — Repositories
===================================

What:  Per-entity data access over an injected AsyncSession.
How:   State changes are single conditional UPDATE statements
       (`... WHERE id = :id AND status IN (:allowed)`), and the matched row
       count tells the service whether the transition won. Ledger uniqueness
       is enforced by database constraints, not by a read before the insert.
"""

from parcelflow.repositories.users import UserRepository
from parcelflow.repositories.riders import RiderRepository
from parcelflow.repositories.parcels import ParcelRepository
from parcelflow.repositories.ledgers import CashoutRepository, PaymentRepository
from parcelflow.repositories.tracking import TrackingRepository

__all__ = [
    "UserRepository",
    "RiderRepository",
    "ParcelRepository",
    "PaymentRepository",
    "CashoutRepository",
    "TrackingRepository",
]
