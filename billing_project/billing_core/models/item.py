from decimal import Decimal
from django.db import models
from ..managers import TenantManager
from .entitymembership import Company


# ---------- Products (stock items that can appear on invoice lines) ----------
class Product(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # Stock Keeping Unit, unique per company when set
    sku = models.CharField(max_length=80, null=True, blank=True)
    name = models.CharField(max_length=200)

    default_unit_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00")
    )
    is_active = models.BooleanField(default=True)

    objects = TenantManager()

    class Meta:
        db_table = "products"
        indexes = [models.Index(fields=["company", "name"], name="product_company_name_idx")]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "sku"], name="uq_company_product_sku"
            )
        ]

    def __str__(self):
        return self.name
