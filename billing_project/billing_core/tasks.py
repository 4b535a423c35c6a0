import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def record_audit_event(
    company_id=None,
    user_id=None,
    action="",
    object_type="",
    object_id="",
    changes=None,
):
    """Write one AuditLog row. Runs after the business transaction committed."""
    # import models lazily to avoid circular imports at module import time
    from .models import AuditLog, Company, User

    # the company or user may be gone by the time the task runs
    if company_id and not Company.objects.filter(pk=company_id).exists():
        company_id = None
    if user_id and not User.objects.filter(pk=user_id).exists():
        user_id = None

    entry = AuditLog.objects.create(
        company_id=company_id,
        user_id=user_id,
        action=action,
        object_type=object_type,
        object_id=str(object_id),
        changes=changes,
    )
    logger.debug("Audit %s %s:%s recorded as #%s", action, object_type, object_id, entry.pk)
    return entry.pk
