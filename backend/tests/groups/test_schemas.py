"""
Tests for group request schemas.
"""

import pytest
from pydantic import ValidationError

from apps.groups.schemas import CreateGroupRequest, GroupPatch


class TestGroupNameValidation:
    """Tests for group name trimming."""

    @pytest.mark.parametrize("schema", [CreateGroupRequest, GroupPatch])
    def test_strips_before_length_check(self, schema) -> None:
        """Should reject a name that is too short once trimmed."""
        with pytest.raises(ValidationError):
            schema(name="  a ")

    @pytest.mark.parametrize("schema", [CreateGroupRequest, GroupPatch])
    def test_strips_surrounding_whitespace(self, schema) -> None:
        """Should hand the trimmed name to the service."""
        assert schema(name=" Alpha ").name == "Alpha"

    def test_patch_without_name_stays_unset(self) -> None:
        """Should not mark name as provided when it was omitted."""
        assert GroupPatch(max_members=3).provided() == {"max_members": 3}
