"""
Camp admission control.

Callers lock the camp with ``lock_camp`` inside their transaction, then call
an ``admit_*`` function before writing the assignment. Counts are fresh
COUNT queries issued after the lock, so two concurrent admissions to the
same camp are serialised and the second one sees the first one's row.

Capacity semantics depend on settings.CAMP_CAPACITY_MODE:
    separate: professionals and casualties are each capped at capacity.
    combined: professionals plus casualties share capacity.
"""

from typing import TYPE_CHECKING

from django.conf import settings

from apps.camps.models import Camp
from apps.core.admission import check_admission, check_capacity_reduction
from apps.core.constants import CampCapacityMode
from apps.core.exceptions import NotFoundError

if TYPE_CHECKING:
    from apps.accounts.models import Professional
    from apps.casualties.models import Casualty


def lock_camp(camp_id) -> Camp:
    """
    Fetch and lock a camp.

    Raises:
        NotFoundError: If the camp does not exist.
    """
    try:
        return Camp.objects.select_for_update().get(pk=camp_id)
    except Camp.DoesNotExist:
        raise NotFoundError("Camp not found") from None


def is_combined() -> bool:
    return settings.CAMP_CAPACITY_MODE == CampCapacityMode.COMBINED


def professional_count(camp: Camp, exclude_pk=None) -> int:
    queryset = camp.professionals.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return queryset.count()


def casualty_count(camp: Camp, exclude_pk=None) -> int:
    queryset = camp.casualties.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return queryset.count()


def admit_professional(camp: Camp, professional: "Professional") -> None:
    """
    Check there is room in ``camp`` for ``professional``.

    A professional already in the camp does not count against it.

    Raises:
        CapacityExceededError: Camp is full.
    """
    occupancy = professional_count(camp, exclude_pk=professional.pk)
    if is_combined():
        occupancy += casualty_count(camp)
    check_admission(str(camp), occupancy, camp.capacity)


def admit_casualty(camp: Camp, casualty: "Casualty | None" = None) -> None:
    """
    Check there is room in ``camp`` for a casualty.

    Pass the casualty when moving an existing one so it does not count
    against the camp it may already be in.

    Raises:
        CapacityExceededError: Camp is full.
    """
    occupancy = casualty_count(camp, exclude_pk=casualty.pk if casualty else None)
    if is_combined():
        occupancy += professional_count(camp)
    check_admission(str(camp), occupancy, camp.capacity)


def occupancy_floor(camp: Camp) -> int:
    """Smallest capacity the camp can be given without evicting anyone."""
    professionals = professional_count(camp)
    casualties = casualty_count(camp)
    if is_combined():
        return professionals + casualties
    return max(professionals, casualties)


def check_camp_capacity_change(camp: Camp, new_capacity: int | None) -> None:
    """
    Raises:
        CapacityExceededError: new_capacity is below current occupancy.
    """
    check_capacity_reduction(str(camp), occupancy_floor(camp), new_capacity)
