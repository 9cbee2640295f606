"""
Tests for the camp API endpoints.
"""

import json

import pytest

from tests.camps.factories import CampFactory


@pytest.mark.django_db
class TestCampEndpoints:
    """Tests for /camps."""

    def test_assign_self(self, login_client, event, member_of) -> None:
        """Should place the caller when no professional is given."""
        camp = CampFactory.create(event=event)
        medic = member_of(event)

        response = login_client(medic).post(
            f"/api/v1/camps/{camp.pk}/assign", data="{}", content_type="application/json"
        )

        assert response.status_code == 200
        assert response.json()["camp_id"] == str(camp.pk)

    def test_capacity_reduction_is_409(self, login_client, commander, event, member_of) -> None:
        """Should refuse shrinking an occupied camp."""
        camp = CampFactory.create(event=event, capacity=2)
        member_of(event, current_camp=camp)
        member_of(event, current_camp=camp)

        response = login_client(commander).patch(
            f"/api/v1/camps/{camp.pk}", data=json.dumps({"capacity": 1}), content_type="application/json"
        )

        assert response.status_code == 409
        assert response.json()["code"] == "capacity_exceeded"

    def test_unassign_self(self, login_client, event, member_of) -> None:
        """Should take the caller out of their camp."""
        medic = member_of(event, current_camp=CampFactory.create(event=event))

        response = login_client(medic).post("/api/v1/camps/unassign", data="{}", content_type="application/json")

        assert response.status_code == 200
        assert response.json()["camp_id"] is None

    def test_delete_occupied_is_409(self, login_client, commander, event, member_of) -> None:
        """Should refuse deleting an occupied camp without force."""
        camp = CampFactory.create(event=event)
        member_of(event, current_camp=camp)
        client = login_client(commander)

        assert client.delete(f"/api/v1/camps/{camp.pk}").status_code == 409

        response = client.delete(f"/api/v1/camps/{camp.pk}?force=true")
        assert response.status_code == 200
        assert response.json()["unassigned_professionals"] == 1

    def test_get_camp(self, login_client, event, member_of) -> None:
        """Should answer 200 with occupancy counts."""
        camp = CampFactory.create(event=event, capacity=3)

        response = login_client(member_of(event, current_camp=camp)).get(f"/api/v1/camps/{camp.pk}")

        assert response.status_code == 200
        body = response.json()
        assert body["capacity"] == 3
        assert body["professional_count"] == 1
        assert body["casualty_count"] == 0

    def test_get_unknown_camp_is_404(self, login_client, commander) -> None:
        """Should answer 404 with the not_found code."""
        response = login_client(commander).get("/api/v1/camps/018f0000-0000-7000-8000-000000000000")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"
