from django.conf import settings
from django.db import models
from ..managers import TenantManager
from ..utils import ZERO
from .customer import Customer
from .entitymembership import Company
from .invoice import Invoice


# ---------- Credit notes ----------
class CreditNote(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name="credit_notes"
    )
    credit_note_number = models.CharField(max_length=64)  # "CN-2025-0001"
    credit_note_date = models.DateField()
    total_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    reason = models.TextField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        db_table = "credit_notes"
        constraints = [
            models.UniqueConstraint(
                fields=["company", "credit_note_number"],
                name="uq_credit_note_company_number",
            ),
        ]

    def __str__(self):
        return self.credit_note_number


class CreditNoteAllocation(models.Model):  # credit applied against an invoice
    credit_note = models.ForeignKey(
        CreditNote, on_delete=models.CASCADE, related_name="allocations"
    )
    invoice = models.ForeignKey(
        Invoice, on_delete=models.PROTECT, related_name="credit_note_allocations"
    )
    allocated_amount = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )

    class Meta:
        db_table = "credit_note_allocations"
        indexes = [models.Index(fields=["invoice"], name="cn_alloc_invoice_idx")]

    def __str__(self):
        return f"{self.credit_note} → {self.invoice} ({self.allocated_amount})"
