"""
ParcelFlow Backend — Rider Earning & Currency Unit Policy
===========================================================

What:  Business constants for rider pay and the major/minor currency units.

Earning:
    rider_earning = cost × rate
    rate = 0.8 when sender and receiver district are the same, else 0.3
    Districts are compared exactly as stored.

Currency units:
    The payment gateway works in minor units (paisa): round(amount × 100).
    The payment ledger stores major units: minor ÷ 100.
"""

from typing import Optional, Union

Number = Union[int, float]

SAME_DISTRICT_RATE = 0.8
CROSS_DISTRICT_RATE = 0.3

MINOR_UNITS_PER_MAJOR = 100


def earning_rate(sender_district: Optional[str], receiver_district: Optional[str]) -> float:
    if sender_district == receiver_district:
        return SAME_DISTRICT_RATE
    return CROSS_DISTRICT_RATE


def compute_rider_earning(
    cost: Number,
    sender_district: Optional[str],
    receiver_district: Optional[str],
) -> float:
    return cost * earning_rate(sender_district, receiver_district)


def to_minor_units(amount: Number) -> int:
    """Major → minor units for the gateway, e.g. 500.5 → 50050."""
    return round(amount * MINOR_UNITS_PER_MAJOR)


def to_major_units(amount: Number) -> float:
    """Minor → major units for the ledger, e.g. 50000 → 500.0."""
    return amount / MINOR_UNITS_PER_MAJOR
