"""
Audit signals.

``audit_write_failed`` is sent whenever an audit entry could not be stored.
The business change it described was still committed. Receivers get
``failure`` (an AuditWriteFailed instance).

    from apps.audit.signals import audit_write_failed

    @receiver(audit_write_failed)
    def page_on_call(sender, failure, **kwargs): ...
"""

from django.dispatch import Signal

audit_write_failed = Signal()
