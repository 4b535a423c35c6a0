from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Customer ----------
# Represents the client who receives invoices and receipts
class Customer(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # The customer's legal or trade name
    name = models.CharField(max_length=200)

    contact_email = models.EmailField(null=True, blank=True)
    contact_phone = models.CharField(max_length=32, blank=True)

    objects = TenantManager()

    class Meta:
        db_table = "customers"
        indexes = [
            models.Index(fields=["company", "name"], name="customer_company_name_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_customer_name"
            ),
        ]

    def __str__(self):
        return self.name
