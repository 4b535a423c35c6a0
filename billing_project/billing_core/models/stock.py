from django.conf import settings
from django.db import models
from ..managers import TenantManager
from .entitymembership import Company
from .item import Product

MOVEMENT_TYPE_CHOICES = [
    ("IN", "Stock in"),
    ("OUT", "Stock out"),
    ("ADJUSTMENT", "Adjustment"),
]

# What a stock movement was caused by (reference_type)
REFERENCE_INVOICE = "INVOICE"
REFERENCE_TYPE_CHOICES = [
    (REFERENCE_INVOICE, "Invoice"),
    ("DELIVERY_NOTE", "Delivery note"),
    ("CREDIT_NOTE", "Credit note"),
    ("PURCHASE", "Purchase"),
    ("ADJUSTMENT", "Adjustment"),
]


# ---------- Inventory ----------
class StockMovement(models.Model):
    """ Generic reference (reference_type, reference_id) instead of a FK:
        movements can point at invoices, delivery notes, purchases... """
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_movements"
    )
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    reference_type = models.CharField(
        max_length=20, choices=REFERENCE_TYPE_CHOICES, null=True, blank=True
    )
    reference_id = models.BigIntegerField(null=True, blank=True)
    quantity = models.DecimalField(max_digits=14, decimal_places=4)
    cost_per_unit = models.DecimalField(
        max_digits=18, decimal_places=4, null=True, blank=True
    )
    notes = models.TextField(null=True, blank=True)
    movement_date = models.DateField(null=True, blank=True)

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
        db_table = "stock_movements"
        indexes = [
            models.Index(fields=["reference_type", "reference_id"], name="stock_reference_idx"),
            models.Index(fields=["company", "product"], name="stock_company_product_idx"),
        ]

    def __str__(self):
        return f"{self.movement_type} {self.quantity} × {self.product}"
