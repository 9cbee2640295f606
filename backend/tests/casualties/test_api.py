"""
Tests for the casualty API endpoints.
"""

import json

import pytest

from apps.core.constants import TriageColor
from tests.accounts.factories import ProfessionalFactory
from tests.casualties.factories import CasualtyFactory


@pytest.mark.django_db
class TestCasualtyEndpoints:
    """Tests for /casualties."""

    def test_add(self, login_client, event, member_of) -> None:
        """Should answer 201 with the new casualty."""
        response = login_client(member_of(event)).post(
            "/api/v1/casualties",
            data=json.dumps({"event_id": str(event.pk), "color": "red", "breathing": False}),
            content_type="application/json",
        )

        assert response.status_code == 201
        assert response.json()["color"] == "red"

    def test_add_outside_event_is_403(self, login_client, event) -> None:
        """Should refuse professionals not working the event."""
        response = login_client(ProfessionalFactory.create()).post(
            "/api/v1/casualties",
            data=json.dumps({"event_id": str(event.pk), "color": "red"}),
            content_type="application/json",
        )

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    def test_update_then_history(self, login_client, event, member_of) -> None:
        """Should show the update in the casualty's history."""
        casualty = CasualtyFactory.create(event=event, color=TriageColor.YELLOW)
        client = login_client(member_of(event))

        response = client.patch(
            f"/api/v1/casualties/{casualty.pk}",
            data=json.dumps({"color": "red"}),
            content_type="application/json",
        )
        assert response.status_code == 200
        assert response.json()["changed_fields"] == ["color"]

        history = client.get(f"/api/v1/casualties/{casualty.pk}/history").json()
        assert [entry["action"] for entry in history] == ["casualty.updated"]
        assert history[0]["changes"] == {"color": {"from": "yellow", "to": "red"}}

    def test_delete_missing_is_404(self, login_client, commander) -> None:
        """Should answer 404 for an unknown casualty."""
        response = login_client(commander).delete("/api/v1/casualties/018f0000-0000-7000-8000-000000000000")

        assert response.status_code == 404
