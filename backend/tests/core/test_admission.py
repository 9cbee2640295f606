"""
Tests for the capacity decision functions.
"""

import pytest

from apps.core.admission import check_admission, check_capacity_reduction, has_room
from apps.core.exceptions import CapacityExceededError


class TestHasRoom:
    """Tests for has_room."""

    @pytest.mark.parametrize(
        ("occupancy", "limit", "incoming", "expected"),
        [
            (0, 1, 1, True),
            (1, 1, 1, False),
            (1, 2, 1, True),
            (1, 2, 2, False),
            (500, None, 1, True),
            (0, 0, 1, False),
        ],
    )
    def test_has_room(self, occupancy: int, limit: int | None, incoming: int, expected: bool) -> None:
        """Should treat None as unlimited and compare occupancy + incoming to the limit."""
        assert has_room(occupancy, limit, incoming) is expected


class TestCheckAdmission:
    """Tests for check_admission."""

    def test_admits_below_limit(self) -> None:
        """Should not raise while there is room."""
        check_admission("Camp North", 1, 2)

    def test_rejects_at_limit(self) -> None:
        """Should raise CapacityExceededError when full."""
        with pytest.raises(CapacityExceededError) as exc_info:
            check_admission("Camp North", 2, 2)

        error = exc_info.value
        assert error.container == "Camp North"
        assert error.occupancy == 2
        assert error.limit == 2
        assert str(error) == "Camp North is at capacity (2 of 2)"
        assert error.code == "capacity_exceeded"

    def test_unlimited_admits_any_number(self) -> None:
        """Should never raise when the limit is None."""
        check_admission("Camp North", 10_000, None, incoming=50)

    def test_zero_limit_reports_zero(self) -> None:
        """Should report a limit of 0, not treat it as unlimited."""
        with pytest.raises(CapacityExceededError) as exc_info:
            check_admission("Camp North", 0, 0)

        assert exc_info.value.limit == 0
        assert str(exc_info.value) == "Camp North is at capacity (0 of 0)"


class TestCheckCapacityReduction:
    """Tests for check_capacity_reduction."""

    def test_allows_reduction_to_occupancy(self) -> None:
        """Should allow a limit equal to current occupancy."""
        check_capacity_reduction("Camp North", 3, 3)

    def test_allows_removing_limit(self) -> None:
        """Should allow clearing the limit."""
        check_capacity_reduction("Camp North", 30, None)

    def test_rejects_reduction_below_occupancy(self) -> None:
        """Should raise with the current count in the message."""
        with pytest.raises(CapacityExceededError) as exc_info:
            check_capacity_reduction("Camp North", 3, 2)

        assert str(exc_info.value) == "Cannot reduce capacity of Camp North to 2. Currently has 3 assigned."
