import logging
from typing import Optional

from django.db import transaction

from ..models import Company

logger = logging.getLogger(__name__)


def _json_safe(changes):
    # Decimals and dates go over the broker as strings
    if not changes:
        return None
    return {key: (value if isinstance(value, (int, bool, type(None))) else str(value))
            for key, value in changes.items()}


def log_action(
    *,
    action: str,
    instance,
    user=None,
    company: Optional[Company] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    The AuditLog row is written by a Celery task once the surrounding
    transaction commits; nothing is recorded for a unit that rolls back,
    and a failure to dispatch never reaches the caller.
    """

    if not company:
        company = getattr(instance, "company", None)

    payload = {
        "company_id": getattr(company, "pk", None),
        "user_id": getattr(user, "pk", None),
        "action": action,
        "object_type": instance.__class__.__name__,
        "object_id": str(instance.pk),
        "changes": _json_safe(changes),
    }

    def dispatch():
        # imported here: tasks imports models, models are loaded lazily
        from ..tasks import record_audit_event

        try:
            record_audit_event.delay(**payload)
        except Exception:
            logger.exception(
                "Could not dispatch audit event %s for %s %s",
                action, payload["object_type"], payload["object_id"],
            )

    transaction.on_commit(dispatch)
