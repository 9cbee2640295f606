"""
Tests for whitelisted partial updates.
"""

import pytest
from pydantic import ValidationError

from apps.camps.models import Camp
from apps.camps.schemas import CampPatch
from apps.core.exceptions import ConstraintViolationError, NoChangeError
from apps.core.patches import apply_changes, diff_patch, require_changes
from tests.camps.factories import CampFactory


class TestPatchSchema:
    """Tests for PatchSchema validation."""

    def test_rejects_unknown_fields(self) -> None:
        """Should refuse fields outside the whitelist at parse time."""
        with pytest.raises(ValidationError):
            CampPatch(location_name="North", event_id="5f0c6a2e-0000-0000-0000-000000000000")

    def test_provided_only_lists_set_fields(self) -> None:
        """Should distinguish an omitted field from an explicit null."""
        assert CampPatch(location_name="North").provided() == {"location_name": "North"}
        assert CampPatch(capacity=None).provided() == {"capacity": None}


class TestDiffPatch:
    """Tests for diff_patch."""

    def test_reports_changed_fields_only(self) -> None:
        """Should skip fields whose value is unchanged."""
        camp = Camp(location_name="North", capacity=5)

        changes = diff_patch(camp, CampPatch(location_name="North", capacity=8))

        assert changes == {"capacity": {"from": 5, "to": 8}}

    def test_empty_when_nothing_differs(self) -> None:
        """Should return an empty map for a no-op patch."""
        camp = Camp(location_name="North", capacity=5)

        assert diff_patch(camp, CampPatch(location_name="North")) == {}

    def test_explicit_null_clears_nullable_field(self) -> None:
        """Should record a change to None for nullable fields."""
        camp = Camp(location_name="North", capacity=5)

        assert diff_patch(camp, CampPatch(capacity=None)) == {"capacity": {"from": 5, "to": None}}

    def test_null_on_non_nullable_field_rejected(self) -> None:
        """Should refuse to clear a required field."""
        camp = Camp(location_name="North")

        with pytest.raises(ConstraintViolationError, match="location_name cannot be cleared"):
            diff_patch(camp, CampPatch(location_name=None))

    def test_narrower_whitelist(self) -> None:
        """Should refuse fields outside an explicit allowed list."""
        camp = Camp(location_name="North", capacity=5)

        with pytest.raises(ConstraintViolationError, match="capacity"):
            diff_patch(camp, CampPatch(capacity=6), allowed=["location_name"])


class TestRequireChanges:
    """Tests for require_changes."""

    def test_raises_on_empty(self) -> None:
        """Should raise NoChangeError with the standard message."""
        with pytest.raises(NoChangeError, match="No changes detected"):
            require_changes({})

    def test_passes_with_changes(self) -> None:
        """Should not raise when something changed."""
        require_changes({"capacity": {"from": 1, "to": 2}})


@pytest.mark.django_db
class TestApplyChanges:
    """Tests for apply_changes."""

    def test_saves_changed_columns_and_actor(self) -> None:
        """Should persist new values and stamp updated_by."""
        camp = CampFactory.create(location_name="North", capacity=5)
        actor = camp.created_by

        changed = apply_changes(camp, {"capacity": {"from": 5, "to": 9}}, actor)

        camp.refresh_from_db()
        assert changed == ["capacity"]
        assert camp.capacity == 9
        assert camp.updated_by_id == actor.pk
