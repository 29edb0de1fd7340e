"""
app/models/distribution.py

Purpose: Distribution and sales record models

- A distribution hands stock from an admin to a salesman
- A sales record is a direct sale booked by a salesman
"""

from enum import Enum


class DistributionStatus(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Allowed forward moves; delivered and cancelled are final
DISTRIBUTION_TRANSITIONS = {
    DistributionStatus.PENDING: {DistributionStatus.DISPATCHED, DistributionStatus.CANCELLED},
    DistributionStatus.DISPATCHED: {DistributionStatus.DELIVERED, DistributionStatus.CANCELLED},
    DistributionStatus.DELIVERED: set(),
    DistributionStatus.CANCELLED: set(),
}


def can_transition(current: str, target: str) -> bool:
    return DistributionStatus(target) in DISTRIBUTION_TRANSITIONS[DistributionStatus(current)]
