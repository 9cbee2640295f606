"""
Audit services - best-effort, append-only change recording.

Call ``record`` (or ``record_change`` for a model instance) inside the same
transaction.atomic() block as the business write, after the write. The
insert runs in its own savepoint: if it fails, only the savepoint rolls
back, the failure is logged and signalled, and the caller's transaction
carries on and commits.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from django.db import models, transaction

from apps.audit.models import AuditLog
from apps.audit.signals import audit_write_failed
from apps.core.exceptions import AuditWriteFailed
from apps.core.logging import get_contextvars, get_logger
from apps.core.patches import Changes

if TYPE_CHECKING:
    from apps.accounts.models import Professional

logger = get_logger(__name__)


def snapshot(instance: models.Model, fields: Iterable[str] | None = None) -> dict[str, Any]:
    """Current values of the audited fields of ``instance``."""
    names = fields if fields is not None else instance.AUDIT_FIELDS  # type: ignore[attr-defined]
    return {name: getattr(instance, name) for name in names}


def created_changes(instance: models.Model, fields: Iterable[str] | None = None) -> Changes:
    """Diff for a creation: every field goes from None to its value."""
    return {name: {"from": None, "to": value} for name, value in snapshot(instance, fields).items()}


def deleted_changes(instance: models.Model, fields: Iterable[str] | None = None) -> Changes:
    """Diff for a deletion: the full pre-delete snapshot, every field to None."""
    return {name: {"from": value, "to": None} for name, value in snapshot(instance, fields).items()}


def _owning_event_id(instance: models.Model) -> Any:
    if instance.AUDIT_ENTITY == AuditLog.EntityType.EVENT:  # type: ignore[attr-defined]
        return instance.pk
    return getattr(instance, "event_id", None)


def record(
    entity_type: str,
    entity_id: Any,
    *,
    actor: "Professional | None",
    action: str,
    changes: Changes,
    event_id: Any = None,
    metadata: dict[str, Any] | None = None,
) -> AuditLog | None:
    """
    Append one audit entry.

    Args:
        entity_type: One of AuditLog.EntityType.
        entity_id: Primary key of the changed entity.
        actor: Professional who made the change (None for system changes).
        action: Action tag, e.g. 'camp.updated'.
        changes: {field: {"from": old, "to": new}}.
        event_id: Owning event, when there is one.
        metadata: Extra context such as unassigned occupant counts.

    Returns:
        The stored entry, or None if the write failed. Failures never raise.
    """
    correlation_id = get_contextvars().get("correlation_id", "")
    try:
        with transaction.atomic():
            entry = AuditLog.objects.create(
                entity_type=entity_type,
                entity_id=str(entity_id),
                event_id=str(event_id) if event_id is not None else "",
                action=action,
                actor_id=str(actor.pk) if actor is not None else "system",
                actor_email=actor.email if actor is not None else "",
                actor_role=actor.role if actor is not None else "",
                correlation_id=str(correlation_id or ""),
                changes=changes,
                metadata=metadata or {},
            )
    except Exception as e:
        failure = AuditWriteFailed(entity_type, entity_id, action, e)
        logger.error(
            "audit_write_failed",
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            error=repr(e),
            exc_info=True,
        )
        audit_write_failed.send_robust(sender=AuditLog, failure=failure)
        return None

    logger.debug("audit_recorded", action=action, entity_type=entity_type, entity_id=str(entity_id))
    return entry


def record_change(
    instance: models.Model,
    *,
    actor: "Professional | None",
    action: str,
    changes: Changes,
    metadata: dict[str, Any] | None = None,
) -> AuditLog | None:
    """``record`` for a model instance that declares AUDIT_ENTITY."""
    return record(
        instance.AUDIT_ENTITY,  # type: ignore[attr-defined]
        instance.pk,
        actor=actor,
        action=action,
        changes=changes,
        event_id=_owning_event_id(instance),
        metadata=metadata,
    )


def list_history(entity_type: str, entity_id: Any) -> list[AuditLog]:
    """All entries for one entity, oldest first."""
    return list(AuditLog.objects.for_entity(entity_type, entity_id).order_by("created_at", "id"))
