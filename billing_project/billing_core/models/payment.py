from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from ..utils import ZERO
from .entitymembership import Company
from .invoice import Invoice

PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("cheque", "Cheque"),
    ("bank_transfer", "Bank Transfer"),
    ("mobile_money", "Mobile Money"),
    ("card", "Card"),
    ("other", "Other"),
]


# ---------- Payments ----------
class Payment(models.Model):  # A cash receipt event against one invoice
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # Direct link to the invoice this payment was taken for
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_number = models.CharField(max_length=64)  # e.g. "PAY-2025-0001"
    payment_date = models.DateField()
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHODS, default="cash"
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    reference_number = models.CharField(max_length=200, null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        db_table = "payments"
        indexes = [
            models.Index(fields=["company", "payment_number"], name="payment_company_number_idx"),
            models.Index(fields=["invoice"], name="payment_invoice_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "payment_number"],
                name="uq_payment_company_number",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="payment_non_negative_amount",
            ),
        ]

    def __str__(self):
        return f"{self.payment_number} ({self.amount})"

    def clean(self):
        if self.invoice_id and self.invoice.company_id != self.company_id:
            raise ValidationError("Invoice must belong to the same company.")

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)


class PaymentAllocation(models.Model):
    """ Bridge row: X of this payment settles this invoice.
        invoice.paid_amount is the sum of these rows. """
    payment = models.ForeignKey(
        Payment, on_delete=models.PROTECT, related_name="allocations"
    )
    invoice = models.ForeignKey(
        Invoice, on_delete=models.PROTECT, related_name="allocations"
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payment_allocations"
        indexes = [
            models.Index(fields=["invoice"], name="allocation_invoice_idx"),
            models.Index(fields=["payment"], name="allocation_payment_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["payment", "invoice"], name="uq_payment_invoice_allocation"
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="allocation_non_negative_amount",
            ),
        ]

    def __str__(self):
        return f"{self.payment.payment_number} → {self.invoice.invoice_number} ({self.amount})"

    def clean(self):
        if self.amount is not None and self.amount < ZERO:
            raise ValidationError("Allocated amount must be non-negative")
        # You can't allocate a payment from Company A to an invoice of Company B
        if self.payment_id and self.invoice_id:
            if self.payment.company_id != self.invoice.company_id:
                raise ValidationError(
                    "Payment and invoice must belong to the same company"
                )

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)


class PaymentAuditLog(models.Model):
    """ Row-level trail of payment allocations.
        Has no cascading delete of its own: it must be cleared before
        the payment or invoice it names can be removed. """
    action = models.CharField(max_length=50)
    payment = models.ForeignKey(
        Payment, on_delete=models.PROTECT, related_name="audit_entries"
    )
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payment_audit_entries",
    )
    payment_amount = models.DecimalField(max_digits=18, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payment_audit_log"
        indexes = [
            models.Index(fields=["payment"], name="payaudit_payment_idx"),
            models.Index(fields=["invoice"], name="payaudit_invoice_idx"),
        ]

    def __str__(self):
        return f"{self.action} payment={self.payment_id} invoice={self.invoice_id}"
