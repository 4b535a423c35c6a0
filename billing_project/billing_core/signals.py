"""Every allocation written leaves a payment audit row in the same transaction."""
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import PaymentAllocation, PaymentAuditLog


# post_save fires inside the caller's atomic block,
# so the audit row commits or rolls back with the allocation
@receiver(post_save, sender=PaymentAllocation)
def payment_allocation_created(sender, instance, created, raw=False, **kwargs):
    # fixtures load raw rows; nothing to audit
    if not created or raw:
        return
    PaymentAuditLog.objects.create(
        action="allocation_created",
        payment_id=instance.payment_id,
        invoice_id=instance.invoice_id,
        payment_amount=instance.amount,
    )
