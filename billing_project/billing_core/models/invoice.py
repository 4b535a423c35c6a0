from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import InvoiceManager
from ..utils import ZERO, money
from .customer import Customer
from .entitymembership import Company
from .item import Product

INV_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("partial", "Partially paid"),
    ("paid", "Paid"),
]
""" Workflow (derived, never set by hand):
    draft   = nothing allocated yet.
    partial = 0 < paid_amount < total_amount.
    paid    = paid_amount >= total_amount. """


class Invoice(models.Model):  # Represents a customer invoice

    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # Customers with invoices cannot be deleted
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    # human-readable, e.g. "INV-2025-0001"
    invoice_number = models.CharField(max_length=64)
    invoice_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)

    status = models.CharField(
        max_length=10, choices=INV_STATUS_CHOICES, default="draft"
    )

    # Σ quantity * unit_price over items
    subtotal = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    # Σ item tax
    tax_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    # Σ item line_total
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=ZERO
    )
    # Σ payment_allocations.amount (cached)
    paid_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=ZERO
    )
    # max(0, total_amount - paid_amount)
    balance_due = models.DecimalField(
        max_digits=18, decimal_places=2, default=ZERO
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

    objects = InvoiceManager()

    class Meta:
        db_table = "invoices"
        indexes = [
            models.Index(fields=["company", "invoice_number"], name="invoice_company_number_idx"),
            models.Index(fields=["company", "customer"], name="invoice_company_customer_idx"),
        ]
        constraints = [
            # Within one company, each invoice number must be unique
            models.UniqueConstraint(
                fields=["company", "invoice_number"],
                name="uq_invoice_company_number",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0)
                & models.Q(paid_amount__gte=0)
                & models.Q(balance_due__gte=0),
                name="inv_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"Inv {self.invoice_number or self.pk}"

    def clean(self):
        if self.customer_id and self.company_id:
            if self.customer.company_id != self.company_id:
                raise ValidationError("Customer must belong to the same company.")

    def save(self, *args, **kwargs):
        # Uniqueness is left to the database so duplicates surface as
        # IntegrityError (document number conflict), not ValidationError
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)


class InvoiceItem(models.Model):  # One line of an invoice

    invoice = models.ForeignKey(
        Invoice, on_delete=models.PROTECT, related_name="items"
    )
    product = models.ForeignKey(
        Product,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
    )
    description = models.TextField(blank=True, default="")

    # line_total = quantity * unit_price + tax_amount
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
        db_table = "invoice_items"
        ordering = ["sort_order", "id"]
        indexes = [models.Index(fields=["invoice", "sort_order"], name="invitem_invoice_order_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0)
                & models.Q(unit_price__gte=0)
                & models.Q(tax_amount__gte=0),
                name="invitem_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.invoice} #{self.sort_order}: {self.description} ({self.line_total})"

    def expected_line_total(self):
        return money(
            (self.quantity or Decimal("0")) * (self.unit_price or Decimal("0"))
            + (self.tax_amount or ZERO)
        )

    def save(self, *args, **kwargs):
        self.line_total = self.expected_line_total()
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)
