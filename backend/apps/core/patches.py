"""
Whitelisted partial updates.

A patch is a pydantic schema listing exactly the fields a client may change
on one entity. Only fields the caller actually set are considered, so an
omitted field is left alone while an explicit null clears a nullable field.
The resulting change map is written with ``save(update_fields=...)``; field
names never come from request data.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

from django.db import models
from ninja import Schema

from apps.core.exceptions import ConstraintViolationError, NoChangeError

ModelT = TypeVar("ModelT", bound=models.Model)

Changes = dict[str, dict[str, Any]]


class PatchSchema(Schema):
    """Base class for entity patches. Unknown fields are rejected."""

    # Fields that may be changed but never set to null
    non_nullable: ClassVar[frozenset[str]] = frozenset()

    model_config = {"extra": "forbid"}

    def provided(self) -> dict[str, Any]:
        """Fields explicitly set by the caller."""
        return self.model_dump(exclude_unset=True)


@dataclass
class MutationResult(Generic[ModelT]):
    """Outcome of an update: the saved instance and the fields that changed."""

    instance: ModelT
    changed_fields: list[str] = field(default_factory=list)


def diff_patch(
    instance: models.Model,
    patch: PatchSchema,
    allowed: Iterable[str] | None = None,
) -> Changes:
    """
    Compare a patch against an instance.

    Args:
        instance: Current state, read inside the caller's transaction.
        patch: The requested partial update.
        allowed: Optional narrower whitelist than the patch schema itself.

    Returns:
        {field: {"from": old, "to": new}} for every field whose value differs.
        Empty when the patch matches current state.

    Raises:
        ConstraintViolationError: A field outside the whitelist was set, or a
            non-nullable field was set to null.
    """
    data = patch.provided()
    whitelist = set(allowed) if allowed is not None else set(type(patch).model_fields)

    unknown = sorted(set(data) - whitelist)
    if unknown:
        raise ConstraintViolationError(f"Fields cannot be updated: {', '.join(unknown)}")

    changes: Changes = {}
    for name, value in data.items():
        if value is None and name in patch.non_nullable:
            raise ConstraintViolationError(f"{name} cannot be cleared")
        current = getattr(instance, name)
        if current != value:
            changes[name] = {"from": current, "to": value}
    return changes


def require_changes(changes: Changes) -> None:
    if not changes:
        raise NoChangeError()


def apply_changes(instance: ModelT, changes: Changes, actor: Any = None) -> list[str]:
    """
    Assign changed values and save only those columns.

    Sets ``updated_by`` when the model has one and an actor is given.

    Returns:
        The changed field names, in patch order.
    """
    for name, change in changes.items():
        setattr(instance, name, change["to"])

    update_fields = list(changes)
    if actor is not None and hasattr(instance, "updated_by_id"):
        instance.updated_by = actor
        update_fields.append("updated_by")
    if hasattr(instance, "updated_at"):
        update_fields.append("updated_at")

    instance.save(update_fields=update_fields)
    return list(changes)
