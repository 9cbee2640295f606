"""
Group services - teams, leadership and membership.

Membership counts are re-read after the group row is locked, so two
concurrent additions to a group with one free slot cannot both succeed.
Lock order is group, then professional.
"""

from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count

from apps.audit.models import AuditLog
from apps.audit.services import created_changes, deleted_changes, record, record_change
from apps.core.admission import check_admission, check_capacity_reduction
from apps.core.exceptions import ConstraintViolationError, NotFoundError
from apps.core.logging import get_logger
from apps.core.patches import MutationResult, apply_changes, diff_patch, require_changes
from apps.core.permissions import Action, enforce, load_actor
from apps.groups.models import MAX_GROUP_SIZE, MIN_GROUP_SIZE, Group

if TYPE_CHECKING:
    from apps.accounts.models import Professional
    from apps.groups.schemas import GroupPatch

logger = get_logger(__name__)


def lock_group(group_id: Any) -> Group:
    """
    Raises:
        NotFoundError: If the group does not exist.
    """
    try:
        return Group.objects.select_for_update().get(pk=group_id)
    except Group.DoesNotExist:
        raise NotFoundError("Group not found") from None


def _lock_professional(professional_id: Any) -> "Professional":
    from apps.accounts.models import Professional

    try:
        return Professional.objects.select_for_update().get(pk=professional_id)
    except Professional.DoesNotExist:
        raise NotFoundError("Professional not found") from None


def member_count(group: Group) -> int:
    return group.members.count()


def _check_name_available(name: str, exclude_pk: Any = None) -> None:
    queryset = Group.objects.filter(name__iexact=name)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise ConstraintViolationError("A group with this name already exists")


def _check_size(max_members: int) -> None:
    if not MIN_GROUP_SIZE <= max_members <= MAX_GROUP_SIZE:
        raise ConstraintViolationError(
            f"max_members must be between {MIN_GROUP_SIZE} and {MAX_GROUP_SIZE}"
        )


def _join(group: Group, professional: "Professional") -> None:
    professional.group = group
    professional.save(update_fields=["group", "updated_at"])


def create_group(
    actor: "Professional",
    *,
    name: str,
    lead_id: Any = None,
    max_members: int | None = None,
) -> Group:
    """
    Create a group led by the actor, or by someone else if a Commander says so.

    The lead becomes the first member.

    Raises:
        ForbiddenError: Non-Commander naming another lead.
        NotFoundError: Lead does not exist.
        ConstraintViolationError: Lead already in a group, duplicate name,
            or size out of range.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        enforce(actor, Action.GROUP_CREATE)
        if lead_id is not None and lead_id != actor.pk:
            enforce(actor, Action.GROUP_ASSIGN_LEAD)

        lead = _lock_professional(lead_id if lead_id is not None else actor.pk)
        if lead.group_id is not None:
            raise ConstraintViolationError("Lead is already a member of a group")

        if max_members is None:
            max_members = settings.GROUP_DEFAULT_MAX_MEMBERS
        _check_size(max_members)

        name = name.strip()
        _check_name_available(name)
        try:
            with transaction.atomic():
                group = Group.objects.create(
                    name=name,
                    lead=lead,
                    max_members=max_members,
                    created_by=actor,
                    updated_by=actor,
                )
        except IntegrityError:
            raise ConstraintViolationError("A group with this name already exists") from None

        _join(group, lead)
        record_change(group, actor=actor, action="group.created", changes=created_changes(group))

    logger.info("group_created", group_id=str(group.pk), lead_id=str(lead.pk), max_members=max_members)
    return group


def update_group(actor: "Professional", group_id: Any, patch: "GroupPatch") -> MutationResult[Group]:
    """
    Rename a group, hand over leadership, or change its size cap.

    A new lead must be a member already or in no group; in the latter case
    they join, subject to the cap. The cap cannot go below the member count.

    Raises:
        NotFoundError: Group or new lead does not exist.
        ForbiddenError: Actor is neither lead nor Commander.
        ConstraintViolationError: Duplicate name, new lead in another group.
        CapacityExceededError: Group full for the new lead, or cap below
            membership.
        NoChangeError: Patch matches current state.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        group = lock_group(group_id)
        enforce(actor, Action.GROUP_UPDATE, group)

        changes = diff_patch(group, patch)
        require_changes(changes)

        if "name" in changes:
            _check_name_available(changes["name"]["to"], exclude_pk=group.pk)

        new_limit = changes.get("max_members", {}).get("to", group.max_members)
        _check_size(new_limit)

        metadata: dict[str, Any] = {}
        if "lead_id" in changes:
            new_lead = _lock_professional(changes["lead_id"]["to"])
            if new_lead.group_id not in (None, group.pk):
                raise ConstraintViolationError("New lead is a member of another group")
            if new_lead.group_id is None:
                check_admission(str(group), member_count(group), new_limit)
                _join(group, new_lead)
                metadata["lead_joined"] = True

        if "max_members" in changes:
            check_capacity_reduction(str(group), member_count(group), new_limit)

        try:
            with transaction.atomic():
                changed = apply_changes(group, changes, actor)
        except IntegrityError:
            raise ConstraintViolationError("A group with this name already exists") from None
        record_change(
            group, actor=actor, action="group.updated", changes=changes, metadata=metadata
        )

    logger.info("group_updated", group_id=str(group.pk), changed_fields=changed)
    return MutationResult(group, changed)


def add_member(actor: "Professional", group_id: Any, professional_id: Any) -> Group:
    """
    Add a professional to a group.

    Raises:
        NotFoundError: Group or professional does not exist.
        ForbiddenError: Actor is neither lead nor Commander.
        ConstraintViolationError: Professional already in a group.
        CapacityExceededError: Group is full.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        group = lock_group(group_id)
        enforce(actor, Action.GROUP_MANAGE_MEMBERS, group)

        professional = _lock_professional(professional_id)
        if professional.group_id is not None:
            raise ConstraintViolationError("Professional is already a member of a group")
        check_admission(str(group), member_count(group), group.max_members)

        _join(group, professional)
        record(
            AuditLog.EntityType.GROUP,
            group.pk,
            actor=actor,
            action="group.member_added",
            changes={"group_id": {"from": None, "to": group.pk}},
            metadata={"professional_id": professional.pk},
        )

    logger.info("group_member_added", group_id=str(group.pk), professional_id=str(professional.pk))
    return group


def remove_member(actor: "Professional", group_id: Any, professional_id: Any) -> Group:
    """
    Remove a professional from a group. The lead cannot be removed.

    Raises:
        NotFoundError: Group or professional does not exist.
        ForbiddenError: Actor is neither lead nor Commander.
        ConstraintViolationError: Not a member, or is the lead.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        group = lock_group(group_id)
        enforce(actor, Action.GROUP_MANAGE_MEMBERS, group)

        professional = _lock_professional(professional_id)
        if professional.group_id != group.pk:
            raise ConstraintViolationError("Professional is not a member of this group")
        if professional.pk == group.lead_id:
            raise ConstraintViolationError("Cannot remove the group lead. Transfer leadership first.")

        professional.group = None
        professional.save(update_fields=["group", "updated_at"])
        record(
            AuditLog.EntityType.GROUP,
            group.pk,
            actor=actor,
            action="group.member_removed",
            changes={"group_id": {"from": group.pk, "to": None}},
            metadata={"professional_id": professional.pk},
        )

    logger.info(
        "group_member_removed", group_id=str(group.pk), professional_id=str(professional.pk)
    )
    return group


def delete_group(actor: "Professional", group_id: Any, *, force: bool = False) -> None:
    """
    Delete a group.

    Without ``force`` the lead must be the only member left. With ``force``
    every member is released first.

    Raises:
        NotFoundError: Group does not exist.
        ForbiddenError: Actor is not a Commander.
        ConstraintViolationError: Other members remain and force was not given.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        group = lock_group(group_id)
        enforce(actor, Action.GROUP_DELETE, group)

        others = group.members.exclude(pk=group.lead_id).count()
        if others and not force:
            raise ConstraintViolationError(
                f"Cannot delete group with {others} members besides the lead. "
                "Use force to remove them."
            )
        released = group.members.update(group=None)

        record_change(
            group,
            actor=actor,
            action="group.deleted",
            changes=deleted_changes(group),
            metadata={"force": force, "released_members": released},
        )
        deleted_id = group.pk
        group.delete()

    logger.info("group_deleted", group_id=str(deleted_id), released_members=released)


def list_groups(actor: "Professional") -> list[Group]:
    """Every group, newest first, each with member_count."""
    actor = load_actor(actor)
    enforce(actor, Action.GROUP_VIEW)
    return list(
        Group.objects.annotate(member_count=Count("members")).order_by("-created_at", "-id")
    )


def get_group(actor: "Professional", group_id: Any) -> Group:
    """
    Raises:
        NotFoundError: Group does not exist.
    """
    actor = load_actor(actor)
    enforce(actor, Action.GROUP_VIEW)
    group = Group.objects.annotate(member_count=Count("members")).filter(pk=group_id).first()
    if group is None:
        raise NotFoundError("Group not found")
    return group
