from django.db import models
from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce


# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):
        return self.filter(company=company)


class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    """Invoice.objects.for_company(request.company)"""


class InvoiceQuerySet(TenantQuerySet):
    def outstanding(self):
        return self.filter(balance_due__gt=0)

    def with_allocated_total(self):
        # Sum of allocations as recorded in the store (not the cached column)
        return self.annotate(
            allocated_total=Coalesce(
                Sum("allocations__amount"),
                Value(0),
                output_field=DecimalField(max_digits=18, decimal_places=2),
            )
        )


class InvoiceManager(models.Manager.from_queryset(InvoiceQuerySet)):
    pass
