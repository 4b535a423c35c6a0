from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..models import Invoice, PaymentAllocation
from ..utils import ZERO, money

DRAFT = "draft"
PARTIAL = "partial"
PAID = "paid"


@dataclass(frozen=True)
class BalanceResult:
    paid_amount: Decimal
    balance_due: Decimal
    status: str


def _amount(allocation):
    # accept PaymentAllocation rows or bare amounts
    return Decimal(getattr(allocation, "amount", allocation) or 0)


def recompute(invoice_total, allocations: Iterable) -> BalanceResult:
    """
    Derive paid amount, balance due and status of an invoice from the
    allocations still linked to it.

    Amounts are compared at cent precision: 100.0001 paid against a total of
    100 is "paid". Nothing allocated is always "draft", even for a zero total.
    """
    total = money(invoice_total or 0)
    paid = money(sum((_amount(a) for a in allocations), ZERO))
    balance_due = max(total - paid, ZERO)

    if paid <= ZERO:
        status = DRAFT
    elif paid >= total:
        status = PAID
    else:
        status = PARTIAL
    return BalanceResult(paid_amount=paid, balance_due=balance_due, status=status)


def refresh_invoice_balance(invoice: Invoice) -> BalanceResult:
    """
    Re-read the allocations of `invoice` from the store and persist the
    derived paid_amount / balance_due / status. Caller holds the row lock.
    """
    amounts = PaymentAllocation.objects.filter(invoice=invoice).values_list(
        "amount", flat=True
    )
    result = recompute(invoice.total_amount, amounts)
    invoice.paid_amount = result.paid_amount
    invoice.balance_due = result.balance_due
    invoice.status = result.status
    invoice.save(update_fields=["paid_amount", "balance_due", "status", "updated_at"])
    return result
