"""
Cascade Planner.

A plan is the ordered list of steps that removes a document and everything
that points at it. Every delete runs before the row it references is removed,
so the PROTECT foreign keys never fire. Plans are built inside the caller's
atomic unit: the root row is read under select_for_update().
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db.models import Q

from ..exceptions import DocumentNotFound
from ..models import (CreditNoteAllocation, Invoice, InvoiceItem, Payment,
                      PaymentAllocation, PaymentAuditLog, Receipt, ReceiptItem,
                      StockMovement)
from ..models.stock import REFERENCE_INVOICE
from .balance import refresh_invoice_balance


class DeleteStep:
    def __init__(self, name, queryset):
        self.name = name
        self.queryset = queryset

    def run(self) -> int:
        """Delete the rows and return how many of this step's model went."""
        _, per_model = self.queryset.delete()
        return per_model.get(self.queryset.model._meta.label, 0)

    def __repr__(self):
        return f"<DeleteStep {self.name}>"


class RecomputeStep:
    """Re-derive paid_amount / balance_due / status of an invoice from the
    allocations that are left."""

    def __init__(self, invoice_id, name="recompute_invoice"):
        self.name = name
        self.invoice_id = invoice_id

    def run(self) -> int:
        invoice = Invoice.objects.select_for_update().filter(pk=self.invoice_id).first()
        if invoice is None:
            return 0
        refresh_invoice_balance(invoice)
        return 1

    def __repr__(self):
        return f"<RecomputeStep {self.name} invoice={self.invoice_id}>"


@dataclass
class CascadePlan:
    operation: str
    entity: str
    root_id: Any
    company: Any
    document_number: str
    root: Any = None
    steps: List[Any] = field(default_factory=list)
    payment_ids: List[int] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def step_names(self):
        return [step.name for step in self.steps]


def plan_invoice_deletion(invoice_id) -> CascadePlan:
    """
    Steps that remove an invoice with its payments, receipts, allocations,
    audit rows, credit-note allocations, stock movements and items.
    Raises DocumentNotFound when the invoice does not exist.
    """
    invoice = (
        Invoice.objects.select_for_update()
        .filter(pk=invoice_id)
        .first()
    )
    if invoice is None:
        raise DocumentNotFound("Invoice", invoice_id)

    # payments linked directly, or only through an allocation
    payment_ids = sorted(
        set(Payment.objects.filter(invoice_id=invoice.pk).values_list("pk", flat=True))
        | set(
            PaymentAllocation.objects.filter(invoice_id=invoice.pk).values_list(
                "payment_id", flat=True
            )
        )
    )
    receipt_ids = list(
        Receipt.objects.filter(
            Q(payment_id__in=payment_ids) | Q(invoice_id=invoice.pk)
        ).values_list("pk", flat=True)
    )

    steps = [
        DeleteStep(
            "payment_audit_log",
            PaymentAuditLog.objects.filter(
                Q(payment_id__in=payment_ids) | Q(invoice_id=invoice.pk)
            ),
        ),
        DeleteStep("receipt_items", ReceiptItem.objects.filter(receipt_id__in=receipt_ids)),
        DeleteStep("receipts", Receipt.objects.filter(pk__in=receipt_ids)),
        # allocations of the directly linked payments go too, or the
        # payment delete below would be refused
        DeleteStep(
            "payment_allocations",
            PaymentAllocation.objects.filter(
                Q(invoice_id=invoice.pk) | Q(payment__invoice_id=invoice.pk)
            ),
        ),
        DeleteStep("payments", Payment.objects.filter(invoice_id=invoice.pk)),
        DeleteStep(
            "credit_note_allocations",
            CreditNoteAllocation.objects.filter(invoice_id=invoice.pk),
        ),
        DeleteStep(
            "stock_movements",
            StockMovement.objects.filter(
                reference_type=REFERENCE_INVOICE, reference_id=invoice.pk
            ),
        ),
        DeleteStep("invoice_items", InvoiceItem.objects.filter(invoice_id=invoice.pk)),
        DeleteStep("invoice", Invoice.objects.filter(pk=invoice.pk)),
    ]
    return CascadePlan(
        operation="delete_invoice_cascade",
        entity="Invoice",
        root_id=invoice.pk,
        company=invoice.company,
        document_number=invoice.invoice_number,
        root=invoice,
        steps=steps,
        payment_ids=payment_ids,
    )


def plan_receipt_deletion(receipt_id) -> CascadePlan:
    """
    Steps that remove one receipt and reverse only its payment. The parent
    invoice stays, its balance recomputed before the receipt row goes.
    Raises DocumentNotFound when the receipt does not exist.
    """
    found = (
        Receipt.objects.filter(pk=receipt_id)
        .values("invoice_id", "payment_id")
        .first()
    )
    if found is None:
        raise DocumentNotFound("Receipt", receipt_id)

    # invoice before receipt, same order as recording a payment
    invoice_id: Optional[int] = found["invoice_id"]
    if invoice_id is not None:
        list(Invoice.objects.select_for_update().filter(pk=invoice_id).values_list("pk"))

    receipt = (
        Receipt.objects.select_for_update()
        .filter(pk=receipt_id)
        .first()
    )
    if receipt is None:
        raise DocumentNotFound("Receipt", receipt_id)
    payment_id = receipt.payment_id

    steps = [
        DeleteStep("receipt_items", ReceiptItem.objects.filter(receipt_id=receipt.pk)),
        DeleteStep(
            "payment_audit_log", PaymentAuditLog.objects.filter(payment_id=payment_id)
        ),
        DeleteStep(
            "payment_allocations", PaymentAllocation.objects.filter(payment_id=payment_id)
        ),
        DeleteStep("payment", Payment.objects.filter(pk=payment_id)),
    ]
    if receipt.invoice_id is not None:
        steps.append(RecomputeStep(receipt.invoice_id))
    steps.append(DeleteStep("receipt", Receipt.objects.filter(pk=receipt.pk)))

    return CascadePlan(
        operation="delete_receipt_cascade",
        entity="Receipt",
        root_id=receipt.pk,
        company=receipt.company,
        document_number=receipt.receipt_number,
        root=receipt,
        steps=steps,
        payment_ids=[payment_id],
        metadata={
            "invoice_id": receipt.invoice_id,
            "payment_id": payment_id,
            "amount_reversed": Decimal(receipt.total_amount),
        },
    )
