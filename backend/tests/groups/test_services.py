"""
Tests for group services.
"""

import pytest

from apps.audit.models import AuditLog
from apps.core.exceptions import (
    CapacityExceededError,
    ConstraintViolationError,
    ForbiddenError,
    NoChangeError,
    NotFoundError,
)
from apps.groups.models import Group
from apps.groups.schemas import GroupPatch
from apps.groups.services import (
    add_member,
    create_group,
    delete_group,
    get_group,
    list_groups,
    remove_member,
    update_group,
)
from tests.accounts.factories import CommanderFactory, ProfessionalFactory
from tests.groups.factories import GroupFactory


@pytest.mark.django_db
class TestCreateGroup:
    """Tests for create_group."""

    def test_actor_leads_by_default(self) -> None:
        """Should make the creator lead and first member."""
        medic = ProfessionalFactory.create()

        group = create_group(medic, name="  Alpha  ")

        medic.refresh_from_db()
        assert group.name == "Alpha"
        assert group.lead_id == medic.pk
        assert group.max_members == 10
        assert medic.group_id == group.pk
        assert AuditLog.objects.filter(action="group.created", entity_id=str(group.pk)).exists()

    def test_commander_names_lead(self, commander) -> None:
        """Should let a Commander put someone else in charge."""
        lead = ProfessionalFactory.create()

        group = create_group(commander, name="Bravo", lead_id=lead.pk, max_members=3)

        assert group.lead_id == lead.pk
        assert list(group.members.values_list("pk", flat=True)) == [lead.pk]

    def test_non_commander_cannot_name_lead(self) -> None:
        """Should refuse naming another lead without being a Commander."""
        with pytest.raises(ForbiddenError):
            create_group(ProfessionalFactory.create(), name="Bravo", lead_id=ProfessionalFactory.create().pk)

    def test_name_unique_ignoring_case(self) -> None:
        """Should refuse a name that differs only in case."""
        GroupFactory.create(name="Alpha")

        with pytest.raises(ConstraintViolationError, match="already exists"):
            create_group(ProfessionalFactory.create(), name="ALPHA")

    def test_lead_already_grouped(self) -> None:
        """Should refuse a lead who already belongs to a group."""
        group = GroupFactory.create()

        with pytest.raises(ConstraintViolationError, match="Lead is already a member"):
            create_group(group.lead, name="Other")

    def test_size_out_of_range(self) -> None:
        """Should refuse a cap above the maximum."""
        with pytest.raises(ConstraintViolationError):
            create_group(ProfessionalFactory.create(), name="Huge", max_members=51)

    def test_default_size_from_settings(self, settings) -> None:
        """Should fall back to the configured default cap."""
        settings.GROUP_DEFAULT_MAX_MEMBERS = 4

        group = create_group(ProfessionalFactory.create(), name="Delta")

        assert group.max_members == 4


@pytest.mark.django_db
class TestMembership:
    """Tests for add_member and remove_member."""

    def test_lead_adds_member(self) -> None:
        """Should add a free professional and audit it."""
        group = GroupFactory.create()
        medic = ProfessionalFactory.create()

        add_member(group.lead, group.pk, medic.pk)

        medic.refresh_from_db()
        entry = AuditLog.objects.get(action="group.member_added")
        assert medic.group_id == group.pk
        assert entry.metadata == {"professional_id": str(medic.pk)}

    def test_full_group(self) -> None:
        """Should refuse members past the cap."""
        group = GroupFactory.create(max_members=2)
        add_member(group.lead, group.pk, ProfessionalFactory.create().pk)
        latecomer = ProfessionalFactory.create()

        with pytest.raises(CapacityExceededError):
            add_member(group.lead, group.pk, latecomer.pk)

        latecomer.refresh_from_db()
        assert latecomer.group_id is None

    def test_member_of_other_group(self) -> None:
        """Should refuse a professional already in a group."""
        group = GroupFactory.create()
        other = GroupFactory.create()

        with pytest.raises(ConstraintViolationError):
            add_member(group.lead, group.pk, other.lead.pk)

    def test_plain_member_cannot_manage(self) -> None:
        """Should reserve membership changes for the lead and Commanders."""
        group = GroupFactory.create()
        member = ProfessionalFactory.create(group=group)

        with pytest.raises(ForbiddenError):
            add_member(member, group.pk, ProfessionalFactory.create().pk)

    def test_remove_member(self) -> None:
        """Should release the member."""
        group = GroupFactory.create()
        member = ProfessionalFactory.create(group=group)

        remove_member(group.lead, group.pk, member.pk)

        member.refresh_from_db()
        assert member.group_id is None

    def test_cannot_remove_lead(self) -> None:
        """Should refuse removing the lead."""
        group = GroupFactory.create()

        with pytest.raises(ConstraintViolationError, match="Transfer leadership first"):
            remove_member(CommanderFactory.create(), group.pk, group.lead_id)

    def test_remove_non_member(self) -> None:
        """Should refuse removing someone from a group they are not in."""
        group = GroupFactory.create()

        with pytest.raises(ConstraintViolationError):
            remove_member(group.lead, group.pk, ProfessionalFactory.create().pk)

    def test_missing_group(self, commander) -> None:
        """Should raise NotFoundError for an unknown group."""
        with pytest.raises(NotFoundError):
            add_member(commander, "018f0000-0000-7000-8000-000000000000", commander.pk)


@pytest.mark.django_db
class TestUpdateGroup:
    """Tests for update_group."""

    def test_rename(self) -> None:
        """Should rename and audit."""
        group = GroupFactory.create(name="Alpha")

        result = update_group(group.lead, group.pk, GroupPatch(name="Alpha Prime"))

        assert result.changed_fields == ["name"]
        assert AuditLog.objects.get(action="group.updated").changes == {
            "name": {"from": "Alpha", "to": "Alpha Prime"}
        }

    def test_hand_over_to_member(self) -> None:
        """Should transfer leadership to an existing member."""
        group = GroupFactory.create()
        member = ProfessionalFactory.create(group=group)

        update_group(group.lead, group.pk, GroupPatch(lead_id=member.pk))

        group.refresh_from_db()
        assert group.lead_id == member.pk

    def test_hand_over_to_outsider_joins_them(self) -> None:
        """Should pull an ungrouped new lead into the group."""
        group = GroupFactory.create()
        outsider = ProfessionalFactory.create()

        update_group(group.lead, group.pk, GroupPatch(lead_id=outsider.pk))

        outsider.refresh_from_db()
        assert outsider.group_id == group.pk
        assert AuditLog.objects.get(action="group.updated").metadata == {"lead_joined": True}

    def test_new_lead_from_other_group(self) -> None:
        """Should refuse a lead who belongs to another group."""
        group = GroupFactory.create()
        other = GroupFactory.create()

        with pytest.raises(ConstraintViolationError, match="another group"):
            update_group(group.lead, group.pk, GroupPatch(lead_id=other.lead_id))

    def test_cap_below_membership(self) -> None:
        """Should refuse a cap below the current member count."""
        group = GroupFactory.create(max_members=5)
        ProfessionalFactory.create(group=group)

        with pytest.raises(CapacityExceededError):
            update_group(group.lead, group.pk, GroupPatch(max_members=1))

        group.refresh_from_db()
        assert group.max_members == 5

    def test_duplicate_name(self) -> None:
        """Should refuse another group's name."""
        GroupFactory.create(name="Alpha")
        group = GroupFactory.create(name="Bravo")

        with pytest.raises(ConstraintViolationError):
            update_group(group.lead, group.pk, GroupPatch(name="alpha"))

    def test_no_change(self) -> None:
        """Should raise NoChangeError for an identical patch."""
        group = GroupFactory.create(max_members=5)

        with pytest.raises(NoChangeError):
            update_group(group.lead, group.pk, GroupPatch(max_members=5))

    def test_rename_to_padded_same_name_is_no_change(self) -> None:
        """Should treat surrounding whitespace as no change and write no audit entry."""
        group = GroupFactory.create(name="Alpha")

        with pytest.raises(NoChangeError):
            update_group(group.lead, group.pk, GroupPatch(name="Alpha "))

        assert not AuditLog.objects.filter(action="group.updated").exists()

    def test_padded_rename_is_stored_trimmed(self) -> None:
        """Should save and audit the trimmed name."""
        group = GroupFactory.create(name="Alpha")

        update_group(group.lead, group.pk, GroupPatch(name="  Bravo  "))

        group.refresh_from_db()
        assert group.name == "Bravo"
        assert AuditLog.objects.get(action="group.updated").changes == {
            "name": {"from": "Alpha", "to": "Bravo"}
        }

    def test_non_lead_forbidden(self) -> None:
        """Should refuse anyone but the lead or a Commander."""
        group = GroupFactory.create()

        with pytest.raises(ForbiddenError):
            update_group(ProfessionalFactory.create(), group.pk, GroupPatch(name="Taken over"))


@pytest.mark.django_db
class TestDeleteGroup:
    """Tests for delete_group."""

    def test_lead_only_group(self, commander) -> None:
        """Should delete a group whose only member is the lead."""
        group = GroupFactory.create()
        lead = group.lead

        delete_group(commander, group.pk)

        lead.refresh_from_db()
        assert not Group.objects.filter(pk=group.pk).exists()
        assert lead.group_id is None

    def test_members_block_delete(self, commander) -> None:
        """Should refuse while other members remain."""
        group = GroupFactory.create()
        ProfessionalFactory.create(group=group)

        with pytest.raises(ConstraintViolationError, match="1 members besides the lead"):
            delete_group(commander, group.pk)

    def test_force_releases_members(self, commander) -> None:
        """Should release everyone and record how many."""
        group = GroupFactory.create()
        member = ProfessionalFactory.create(group=group)

        delete_group(commander, group.pk, force=True)

        member.refresh_from_db()
        entry = AuditLog.objects.get(action="group.deleted")
        assert member.group_id is None
        assert entry.metadata == {"force": True, "released_members": 2}

    def test_lead_cannot_delete(self) -> None:
        """Should reserve deletion for Commanders."""
        group = GroupFactory.create()

        with pytest.raises(ForbiddenError):
            delete_group(group.lead, group.pk)


@pytest.mark.django_db
class TestReadGroups:
    """Tests for list_groups and get_group."""

    def test_list_newest_first_with_member_count(self) -> None:
        """Should list every group, newest first, with its member count."""
        first = GroupFactory.create()
        second = GroupFactory.create()
        ProfessionalFactory.create_batch(2, group=second)

        groups = list_groups(ProfessionalFactory.create())

        assert [(g.pk, g.member_count) for g in groups] == [(second.pk, 3), (first.pk, 1)]

    def test_get(self) -> None:
        """Should let any professional read a group."""
        group = GroupFactory.create()

        found = get_group(ProfessionalFactory.create(), group.pk)

        assert found.pk == group.pk
        assert found.member_count == 1

    def test_get_missing(self) -> None:
        """Should raise NotFoundError for an unknown group."""
        with pytest.raises(NotFoundError):
            get_group(ProfessionalFactory.create(), "018f0000-0000-7000-8000-000000000000")

    def test_inactive_actor_forbidden(self) -> None:
        """Should refuse a disabled account."""
        with pytest.raises(ForbiddenError):
            list_groups(ProfessionalFactory.create(is_active=False))
