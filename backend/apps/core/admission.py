"""
Capacity decisions for camps and groups.

These functions only decide. Callers are responsible for locking the
container row and counting occupants inside the same transaction that
performs the write, see apps.camps.admission and apps.groups.services.
A limit of None means unlimited.
"""

from apps.core.exceptions import CapacityExceededError
from apps.core.logging import get_logger

logger = get_logger(__name__)


def has_room(occupancy: int, limit: int | None, incoming: int = 1) -> bool:
    return limit is None or occupancy + incoming <= limit


def check_admission(
    container: str,
    occupancy: int,
    limit: int | None,
    incoming: int = 1,
) -> None:
    """
    Reject an assignment that would push occupancy past the limit.

    Args:
        container: Human-readable container label, e.g. "Camp North".
        occupancy: Occupant count re-read inside the current transaction.
        limit: Capacity, or None for unlimited.
        incoming: Number of occupants being added.

    Raises:
        CapacityExceededError: If occupancy + incoming exceeds limit.
    """
    if limit is None or has_room(occupancy, limit, incoming):
        return
    logger.info("capacity_exceeded", container=container, occupancy=occupancy, limit=limit)
    raise CapacityExceededError(container, occupancy, limit)


def check_capacity_reduction(container: str, occupancy: int, new_limit: int | None) -> None:
    """
    Reject lowering a limit below current occupancy.

    Raises:
        CapacityExceededError: If new_limit is below occupancy.
    """
    if new_limit is None or new_limit >= occupancy:
        return
    logger.info(
        "capacity_reduction_rejected",
        container=container,
        occupancy=occupancy,
        requested_limit=new_limit,
    )
    raise CapacityExceededError(
        container,
        occupancy,
        new_limit,
        message=(
            f"Cannot reduce capacity of {container} to {new_limit}. "
            f"Currently has {occupancy} assigned."
        ),
    )
