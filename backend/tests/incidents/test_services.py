"""
Tests for event services: lifecycle, deletion, join and leave.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.core.constants import EventStatus, Role
from apps.core.exceptions import (
    CapacityExceededError,
    ConstraintViolationError,
    EventClosedError,
    ForbiddenError,
    InvalidTransitionError,
    NoChangeError,
    NotFoundError,
)
from apps.incidents.models import INVITE_CODE_ALPHABET, Event
from apps.incidents.schemas import EventPatch
from apps.incidents.services import (
    create_event,
    delete_event,
    get_event,
    join_event_by_code,
    leave_event,
    list_events,
    transition_event,
    update_event,
)
from tests.accounts.factories import ProfessionalFactory
from tests.camps.factories import CampFactory
from tests.casualties.factories import CasualtyFactory
from tests.incidents.factories import EventFactory


def audit_actions(entity_id) -> list[str]:
    return list(
        AuditLog.objects.filter(entity_id=str(entity_id)).order_by("created_at", "id").values_list("action", flat=True)
    )


@pytest.mark.django_db
class TestCreateEvent:
    """Tests for create_event."""

    def test_commander_creates_and_joins(self, commander) -> None:
        """Should create an upcoming event, move the creator in and audit it."""
        event = create_event(commander, name="Train derailment", location="Km 42")

        commander.refresh_from_db()
        assert event.status == EventStatus.UPCOMING
        assert commander.current_event_id == event.pk
        assert len(event.invite_code) == 8
        assert set(event.invite_code) <= set(INVITE_CODE_ALPHABET)
        assert audit_actions(event.pk) == ["event.created"]

    def test_creation_diff_starts_from_none(self, commander) -> None:
        """Should record every audited field with from=None."""
        event = create_event(commander, name="Flood")

        entry = AuditLog.objects.get(entity_id=str(event.pk))
        assert entry.changes["name"] == {"from": None, "to": "Flood"}
        assert entry.changes["status"] == {"from": None, "to": "upcoming"}

    def test_can_start_in_progress(self, commander) -> None:
        """Should accept in_progress as the initial status."""
        event = create_event(commander, name="Fire", status=EventStatus.IN_PROGRESS)

        assert event.status == EventStatus.IN_PROGRESS

    def test_cannot_start_finished(self, commander) -> None:
        """Should refuse a terminal initial status."""
        with pytest.raises(ConstraintViolationError):
            create_event(commander, name="Fire", status=EventStatus.FINISHED)

        assert not Event.objects.exists()

    def test_finish_must_follow_start(self, commander) -> None:
        """Should refuse a finish time before the start time."""
        start = timezone.now()

        with pytest.raises(ConstraintViolationError):
            create_event(commander, name="Fire", start_time=start, finish_time=start - timedelta(hours=1))

    def test_non_commander_forbidden(self) -> None:
        """Should refuse anyone but a Commander."""
        officer = ProfessionalFactory.create(role=Role.MEDICAL_OFFICER)

        with pytest.raises(ForbiddenError):
            create_event(officer, name="Fire")

        assert not Event.objects.exists()
        assert not AuditLog.objects.exists()


@pytest.mark.django_db
class TestTransitionEvent:
    """Tests for transition_event."""

    def test_upcoming_cannot_jump_to_finished(self, commander) -> None:
        """Should reject upcoming -> finished and change nothing."""
        event = create_event(commander, name="E1")

        with pytest.raises(InvalidTransitionError) as exc_info:
            transition_event(commander, event.pk, EventStatus.FINISHED)

        event.refresh_from_db()
        assert event.status == EventStatus.UPCOMING
        assert "Valid transitions: cancelled, in_progress" in str(exc_info.value)
        assert audit_actions(event.pk) == ["event.created"]

    def test_finishing_stamps_finish_time(self, commander, event) -> None:
        """Should set finish_time when entering finished."""
        result = transition_event(commander, event.pk, EventStatus.FINISHED)

        assert result.instance.status == EventStatus.FINISHED
        assert result.instance.finish_time is not None
        assert result.changed_fields == ["status", "finish_time"]
        assert audit_actions(event.pk) == ["event.status_changed"]

    def test_finishing_keeps_existing_finish_time(self, commander) -> None:
        """Should not overwrite a planned finish time."""
        planned = timezone.now() + timedelta(hours=3)
        event = EventFactory.create(finish_time=planned)

        result = transition_event(commander, event.pk, EventStatus.FINISHED)

        assert result.instance.finish_time == planned
        assert result.changed_fields == ["status"]

    def test_same_status_is_no_change(self, commander, event) -> None:
        """Should raise NoChangeError and write no audit entry."""
        with pytest.raises(NoChangeError):
            transition_event(commander, event.pk, EventStatus.IN_PROGRESS)

        assert audit_actions(event.pk) == []

    def test_terminal_event_cannot_transition(self, commander) -> None:
        """Should reject any transition out of cancelled."""
        event = EventFactory.create(status=EventStatus.CANCELLED)

        with pytest.raises(InvalidTransitionError):
            transition_event(commander, event.pk, EventStatus.IN_PROGRESS)

    def test_missing_event(self, commander) -> None:
        """Should raise NotFoundError for an unknown id."""
        with pytest.raises(NotFoundError):
            transition_event(commander, "018f0000-0000-7000-8000-000000000000", EventStatus.FINISHED)

    def test_non_commander_forbidden(self, event, member_of) -> None:
        """Should refuse members who are not Commanders."""
        medic = member_of(event, role=Role.PARAMEDIC)

        with pytest.raises(ForbiddenError):
            transition_event(medic, event.pk, EventStatus.FINISHED)


@pytest.mark.django_db
class TestUpdateEvent:
    """Tests for update_event."""

    def test_updates_changed_fields(self, commander, event) -> None:
        """Should save only the fields that changed and audit the diff."""
        result = update_event(commander, event.pk, EventPatch(name="Renamed", location=event.location))

        entry = AuditLog.objects.get(entity_id=str(event.pk), action="event.updated")
        assert result.changed_fields == ["name"]
        assert entry.changes == {"name": {"from": event.name, "to": "Renamed"}}

    def test_no_op_patch(self, commander, event) -> None:
        """Should raise NoChangeError for a patch matching current state."""
        with pytest.raises(NoChangeError):
            update_event(commander, event.pk, EventPatch(name=event.name))

        assert audit_actions(event.pk) == []

    @pytest.mark.parametrize("status", [EventStatus.FINISHED, EventStatus.CANCELLED])
    def test_closed_event_is_immutable(self, commander, status: str) -> None:
        """Should refuse content edits once the event is closed."""
        event = EventFactory.create(status=status, name="Old")

        with pytest.raises(EventClosedError):
            update_event(commander, event.pk, EventPatch(name="New"))

        event.refresh_from_db()
        assert event.name == "Old"


@pytest.mark.django_db
class TestDeleteEvent:
    """Tests for delete_event."""

    def test_idle_event_deleted(self, commander) -> None:
        """Should delete an upcoming event with no data and keep its audit trail."""
        event = create_event(commander, name="Drill")

        result = delete_event(commander, event.pk)

        commander.refresh_from_db()
        assert not Event.objects.filter(pk=event.pk).exists()
        assert commander.current_event_id is None
        assert result.deleted_counts == {"camps": 0, "casualties": 0, "tasks": 0, "resource_requests": 0}
        assert audit_actions(event.pk) == ["event.created", "event.deleted"]

    def test_in_progress_event_needs_force(self, commander, event) -> None:
        """Should refuse to delete a running event without force."""
        with pytest.raises(ConstraintViolationError, match="in progress"):
            delete_event(commander, event.pk)

        assert Event.objects.filter(pk=event.pk).exists()

    def test_event_with_data_needs_force(self, commander) -> None:
        """Should list the blocking data in the error."""
        event = EventFactory.create(status=EventStatus.UPCOMING)
        CampFactory.create(event=event)
        CasualtyFactory.create(event=event)

        with pytest.raises(ConstraintViolationError, match="1 camps, 1 casualties"):
            delete_event(commander, event.pk)

    def test_force_deletes_everything(self, commander, event, member_of) -> None:
        """Should cascade to dependents and unassign members."""
        camp = CampFactory.create(event=event)
        medic = member_of(event, current_camp=camp)
        CasualtyFactory.create(event=event, camp=camp)

        result = delete_event(commander, event.pk, force=True)

        medic.refresh_from_db()
        assert result.deleted_counts["camps"] == 1
        assert result.deleted_counts["casualties"] == 1
        assert medic.current_event_id is None
        assert medic.current_camp_id is None
        assert not Event.objects.filter(pk=event.pk).exists()


@pytest.mark.django_db
class TestJoinEvent:
    """Tests for join_event_by_code."""

    def test_join_by_code_case_insensitive(self, event) -> None:
        """Should accept a lower-case code with surrounding spaces."""
        medic = ProfessionalFactory.create()

        result = join_event_by_code(medic, f"  {event.invite_code.lower()} ")

        medic.refresh_from_db()
        assert result.event.pk == event.pk
        assert medic.current_event_id == event.pk
        assert result.changed_fields == ["current_event_id"]
        entry = AuditLog.objects.get(action="event.member_joined")
        assert entry.changes == {"current_event_id": {"from": None, "to": str(event.pk)}}
        assert entry.metadata == {"professional_id": str(medic.pk)}

    def test_join_straight_into_camp(self, event) -> None:
        """Should set event and camp together."""
        camp = CampFactory.create(event=event, capacity=1)
        medic = ProfessionalFactory.create()

        join_event_by_code(medic, event.invite_code, camp.pk)

        medic.refresh_from_db()
        assert medic.current_camp_id == camp.pk

    def test_full_camp_leaves_actor_unchanged(self, event, member_of) -> None:
        """Should reject a full camp and keep the previous assignment."""
        camp = CampFactory.create(event=event, capacity=1)
        member_of(event, current_camp=camp)
        previous = EventFactory.create()
        medic = ProfessionalFactory.create(current_event=previous)

        with pytest.raises(CapacityExceededError):
            join_event_by_code(medic, event.invite_code, camp.pk)

        medic.refresh_from_db()
        assert medic.current_event_id == previous.pk
        assert not AuditLog.objects.filter(action="event.member_joined").exists()

    def test_camp_of_other_event(self, event) -> None:
        """Should refuse a camp that belongs to another event."""
        other_camp = CampFactory.create()
        medic = ProfessionalFactory.create()

        with pytest.raises(ConstraintViolationError):
            join_event_by_code(medic, event.invite_code, other_camp.pk)

    def test_unknown_code(self) -> None:
        """Should raise NotFoundError for an unknown code."""
        with pytest.raises(NotFoundError):
            join_event_by_code(ProfessionalFactory.create(), "NOPE2345")

    @pytest.mark.parametrize("status", [EventStatus.FINISHED, EventStatus.CANCELLED])
    def test_closed_event(self, status: str) -> None:
        """Should refuse to join a closed event."""
        event = EventFactory.create(status=status)

        with pytest.raises(EventClosedError):
            join_event_by_code(ProfessionalFactory.create(), event.invite_code)

    def test_switching_events_drops_old_camp(self, event) -> None:
        """Should replace the previous event and clear its camp."""
        old_camp = CampFactory.create()
        medic = ProfessionalFactory.create(current_event=old_camp.event, current_camp=old_camp)

        result = join_event_by_code(medic, event.invite_code)

        medic.refresh_from_db()
        assert medic.current_event_id == event.pk
        assert medic.current_camp_id is None
        assert result.changed_fields == ["current_event_id", "current_camp_id"]

    def test_rejoin_is_silent(self, event, member_of) -> None:
        """Should change nothing and write no audit entry when already there."""
        medic = member_of(event)

        result = join_event_by_code(medic, event.invite_code)

        assert result.changed_fields == []
        assert not AuditLog.objects.filter(action="event.member_joined").exists()


@pytest.mark.django_db
class TestLeaveEvent:
    """Tests for leave_event."""

    def test_leave_clears_event_and_camp(self, event, member_of) -> None:
        """Should clear both assignments and audit the departure."""
        camp = CampFactory.create(event=event)
        medic = member_of(event, current_camp=camp)

        leave_event(medic)

        medic.refresh_from_db()
        assert medic.current_event_id is None
        assert medic.current_camp_id is None
        assert audit_actions(event.pk) == ["event.member_left"]

    def test_leave_closed_event_allowed(self, member_of) -> None:
        """Should let professionals leave finished events."""
        event = EventFactory.create(status=EventStatus.FINISHED)
        medic = member_of(event)

        leave_event(medic)

        medic.refresh_from_db()
        assert medic.current_event_id is None

    def test_leave_without_event(self) -> None:
        """Should raise NoChangeError when not in an event."""
        with pytest.raises(NoChangeError):
            leave_event(ProfessionalFactory.create())


@pytest.mark.django_db
class TestListEvents:
    """Tests for list_events."""

    def test_commander_sees_all_latest_start_first(self, commander) -> None:
        """Should list every event by start time, unscheduled ones last."""
        now = timezone.now()
        older = EventFactory.create(start_time=now - timedelta(days=2))
        newer = EventFactory.create(start_time=now - timedelta(hours=1))
        unscheduled = EventFactory.create(start_time=None)

        events = list_events(commander)

        assert [e.pk for e in events] == [newer.pk, older.pk, unscheduled.pk]

    def test_member_sees_only_own_event(self, event, member_of) -> None:
        """Should hide other events from non-Commanders."""
        EventFactory.create()
        medic = member_of(event)

        assert [e.pk for e in list_events(medic)] == [event.pk]

    def test_outsider_sees_nothing(self) -> None:
        """Should return an empty list for a professional in no event."""
        EventFactory.create()

        assert list_events(ProfessionalFactory.create()) == []

    def test_status_filter(self, commander) -> None:
        """Should filter on status."""
        upcoming = EventFactory.create(status=EventStatus.UPCOMING)
        EventFactory.create(status=EventStatus.IN_PROGRESS)

        assert [e.pk for e in list_events(commander, status=EventStatus.UPCOMING)] == [upcoming.pk]

    def test_counts(self, event, member_of) -> None:
        """Should count camps, casualties and professionals without multiplying joins."""
        camp = CampFactory.create(event=event)
        CampFactory.create(event=event)
        CasualtyFactory.create_batch(3, event=event, camp=camp)
        member_of(event)

        (listed,) = list_events(member_of(event))

        assert listed.camp_count == 2
        assert listed.casualty_count == 3
        assert listed.professional_count == 3


@pytest.mark.django_db
class TestGetEvent:
    """Tests for get_event."""

    def test_member_reads_event(self, event, member_of) -> None:
        """Should return the event with its counts."""
        CampFactory.create(event=event)

        found = get_event(member_of(event), event.pk)

        assert found.pk == event.pk
        assert found.camp_count == 1
        assert found.professional_count == 2

    def test_outsider_forbidden(self, event) -> None:
        """Should refuse professionals outside the event."""
        with pytest.raises(ForbiddenError):
            get_event(ProfessionalFactory.create(), event.pk)

    def test_commander_reads_any_event(self, commander) -> None:
        """Should let a Commander read an event they are not in."""
        other = EventFactory.create()

        assert get_event(commander, other.pk).pk == other.pk

    def test_missing(self, commander) -> None:
        """Should raise NotFoundError for an unknown id."""
        with pytest.raises(NotFoundError):
            get_event(commander, "018f0000-0000-7000-8000-000000000000")
