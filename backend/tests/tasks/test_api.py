"""
Tests for the task API endpoints.
"""

import json

import pytest

from apps.core.constants import TaskStatus
from tests.tasks.factories import TaskFactory


@pytest.mark.django_db
class TestTaskEndpoints:
    """Tests for /tasks."""

    def test_create(self, login_client, event, member_of) -> None:
        """Should answer 201 with a pending task."""
        assignee = member_of(event)

        response = login_client(member_of(event)).post(
            "/api/v1/tasks",
            data=json.dumps(
                {"event_id": str(event.pk), "assigned_to_id": str(assignee.pk), "description": "Move the ambulance"}
            ),
            content_type="application/json",
        )

        assert response.status_code == 201
        assert response.json()["status"] == "pending"

    def test_reopen_by_assignee_is_403(self, login_client, event, member_of) -> None:
        """Should refuse the assignee reopening a completed task."""
        assignee = member_of(event)
        task = TaskFactory.create(event=event, assigned_to=assignee, status=TaskStatus.COMPLETED)

        response = login_client(assignee).patch(
            f"/api/v1/tasks/{task.pk}",
            data=json.dumps({"status": "in_progress"}),
            content_type="application/json",
        )

        assert response.status_code == 403

    def test_cancel(self, login_client, commander) -> None:
        """Should cancel the task."""
        task = TaskFactory.create()

        response = login_client(commander).post(f"/api/v1/tasks/{task.pk}/cancel")

        assert response.status_code == 200
        assert response.json()["task"]["status"] == "cancelled"

    def test_list_tasks(self, login_client, event, member_of) -> None:
        """Should list only the caller's tasks, filtered by status."""
        medic = member_of(event)
        own = TaskFactory.create(event=event, assigned_to=medic, status=TaskStatus.IN_PROGRESS)
        TaskFactory.create(event=event, assigned_to=medic)
        TaskFactory.create(event=event, status=TaskStatus.IN_PROGRESS)

        response = login_client(medic).get("/api/v1/tasks?status=in_progress")

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [str(own.pk)]

    def test_get_task(self, login_client) -> None:
        """Should answer 200 to the assignee."""
        task = TaskFactory.create()

        response = login_client(task.assigned_to).get(f"/api/v1/tasks/{task.pk}")

        assert response.status_code == 200
        assert response.json()["description"] == task.description

    def test_get_task_bystander_is_403(self, login_client, event, member_of) -> None:
        """Should answer 403 to someone neither creating nor assigned."""
        task = TaskFactory.create(event=event)

        response = login_client(member_of(event)).get(f"/api/v1/tasks/{task.pk}")

        assert response.status_code == 403
