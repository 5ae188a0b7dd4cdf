"""
ParcelFlow Backend — Status Types & Transition Tables
=======================================================

What:  Enumerated state types for parcels, riders and users, plus the tables
       of legal transitions between them.
How:   Each table maps a target state to the set of states it may be entered
       from. Repositories turn `sources_for(...)` into the WHERE clause of a
       single conditional UPDATE, so a write that races with another request
       matches zero rows instead of overwriting the newer state.

STATE MACHINES:

    Delivery:  pending ──assign──▶ assigned ──pick──▶ on_the_way ──deliver──▶ delivered
                                   │  ▲
                                   └──┘ re-assign (before pickup)

    Payment:   unpaid ──record payment──▶ paid

    Rider:     pending ──approve──▶ approved
               pending ──reject───▶ rejected

    delivered, paid, approved and rejected are terminal.
"""

import enum
from typing import Dict, FrozenSet, Mapping, TypeVar

from parcelflow.exceptions import ConflictError


class DeliveryStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class RiderStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserRole(str, enum.Enum):
    USER = "user"
    RIDER = "rider"
    ADMIN = "admin"


S = TypeVar("S", bound=enum.Enum)

# target → states it may be entered from
DELIVERY_TRANSITIONS: Dict[DeliveryStatus, FrozenSet[DeliveryStatus]] = {
    DeliveryStatus.ASSIGNED: frozenset({DeliveryStatus.PENDING, DeliveryStatus.ASSIGNED}),
    DeliveryStatus.ON_THE_WAY: frozenset({DeliveryStatus.ASSIGNED}),
    DeliveryStatus.DELIVERED: frozenset({DeliveryStatus.ON_THE_WAY}),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PAID: frozenset({PaymentStatus.UNPAID}),
}

RIDER_TRANSITIONS: Dict[RiderStatus, FrozenSet[RiderStatus]] = {
    RiderStatus.APPROVED: frozenset({RiderStatus.PENDING}),
    RiderStatus.REJECTED: frozenset({RiderStatus.PENDING}),
}

# Statuses a rider sees on their own delivery board
RIDER_VISIBLE_STATUSES = (
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.ON_THE_WAY,
    DeliveryStatus.DELIVERED,
)


def sources_for(table: Mapping[S, FrozenSet[S]], target: S) -> FrozenSet[S]:
    """States from which `target` may be entered (empty when never)."""
    return table.get(target, frozenset())


def source_values(table: Mapping[S, FrozenSet[S]], target: S) -> list:
    """Column values for a conditional `status IN (...)` clause."""
    return sorted(state.value for state in sources_for(table, target))


def can_transition(table: Mapping[S, FrozenSet[S]], current: S, target: S) -> bool:
    return current in sources_for(table, target)


def ensure_transition(
    table: Mapping[S, FrozenSet[S]],
    current: S,
    target: S,
    entity: str = "entity",
) -> None:
    """
    Raises ConflictError unless `current → target` is listed in `table`.

    Used to explain a conditional update that matched zero rows, and by
    callers that want to reject a request before touching the database.
    """
    if not can_transition(table, current, target):
        raise ConflictError(
            message=f"Cannot move {entity} from '{current.value}' to '{target.value}'",
            context={"current": current.value, "target": target.value},
        )
