from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from ..utils import ZERO, money
from .entitymembership import Company
from .invoice import Invoice
from .item import Product
from .payment import Payment

RECEIPT_TYPE_CHOICES = [
    ("direct_receipt", "Direct receipt"),  # invoice created together with the payment
    ("invoice_payment", "Invoice payment"),  # payment against an existing invoice
]

EXCESS_HANDLING_CHOICES = [
    ("pending", "Pending"),
    ("refunded", "Refunded"),
    ("credited", "Credited"),
    ("written_off", "Written off"),
]


# ---------- Receipts ----------
class Receipt(models.Model):  # Proof-of-payment snapshot
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # Exactly one owning payment. Reversal deletes the payment before the
    # receipt inside one transaction, so the database enforces this link at
    # commit (deferred constraint) rather than Django's collector.
    payment = models.ForeignKey(
        Payment, on_delete=models.DO_NOTHING, related_name="receipts"
    )
    # At most one owning invoice
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="receipts",
    )

    receipt_number = models.CharField(max_length=64)
    receipt_date = models.DateField()
    receipt_type = models.CharField(
        max_length=20, choices=RECEIPT_TYPE_CHOICES, default="direct_receipt"
    )

    # Full amount received (payment.amount)
    total_amount = models.DecimalField(max_digits=18, decimal_places=2)
    # max(0, payment.amount - amount applied to the invoice)
    excess_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    excess_handling = models.CharField(
        max_length=20, choices=EXCESS_HANDLING_CHOICES, default="pending"
    )
    notes = models.TextField(null=True, blank=True)

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
        db_table = "receipts"
        indexes = [
            models.Index(fields=["company", "receipt_number"], name="receipt_company_number_idx"),
            models.Index(fields=["payment"], name="receipt_payment_idx"),
            models.Index(fields=["invoice"], name="receipt_invoice_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "receipt_number"],
                name="uq_receipt_company_number",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0) & models.Q(excess_amount__gte=0),
                name="receipt_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.receipt_number} ({self.total_amount})"

    def clean(self):
        if self.payment_id and self.payment.company_id != self.company_id:
            raise ValidationError("Payment must belong to the same company.")
        if self.invoice_id and self.invoice.company_id != self.company_id:
            raise ValidationError("Invoice must belong to the same company.")

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)


class ReceiptItem(models.Model):
    """ Frozen copy of an invoice line at receipt time.
        Written once with its receipt, never re-derived or edited. """
    receipt = models.ForeignKey(
        Receipt, on_delete=models.PROTECT, related_name="items"
    )
    product = models.ForeignKey(
        Product, null=True, blank=True, on_delete=models.PROTECT
    )
    description = models.TextField(blank=True, default="")
    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1")
    )
    unit_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00")
    )
    tax_percentage = models.DecimalField(
        max_digits=7, decimal_places=4, default=Decimal("0")
    )
    tax_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    line_total = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    sort_order = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "receipt_items"
        ordering = ["sort_order", "id"]
        indexes = [models.Index(fields=["receipt", "sort_order"], name="rcptitem_receipt_order_idx")]

    def __str__(self):
        return f"{self.receipt} #{self.sort_order}: {self.description} ({self.line_total})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Receipt items are a snapshot and cannot be modified.")
        self.line_total = money(
            (self.quantity or Decimal("0")) * (self.unit_price or Decimal("0"))
            + (self.tax_amount or ZERO)
        )
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)
