"""
Document Graph Builder.

Turns caller input into the drafts the Transaction Coordinator writes:
invoice + items + payment + allocation + receipt + receipt items.
Pure computation: document numbers are passed in, nothing touches the store.
"""
import datetime
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.utils import timezone

from ..models.payment import PAYMENT_METHODS
from ..utils import ZERO, money, to_decimal
from .balance import recompute

QTY = Decimal("0.0001")
PAYMENT_METHOD_CODES = {code for code, _ in PAYMENT_METHODS}


def _qty(value: Decimal) -> Decimal:
    return value.quantize(QTY, rounding=ROUND_HALF_UP)


def _non_negative(value, field_name, default=None):
    if (value is None or value == "") and default is not None:
        value = default
    number = to_decimal(value, field_name)
    if number < 0:
        raise ValidationError(f"{field_name} must be non-negative")
    return number


def _date(value, field_name):
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD)")


def _blank_to_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


# ----------------------------
# Typed request structs
# ----------------------------
@dataclass
class LineItemInput:
    description: str = ""
    quantity: Any = 0
    unit_price: Any = 0
    tax_amount: Any = 0
    tax_percentage: Any = 0
    product_id: Optional[int] = None

    @classmethod
    def coerce(cls, data):
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            raise ValidationError("Each item must be an object")
        return cls(
            description=data.get("description") or "",
            quantity=data.get("quantity", 0),
            unit_price=data.get("unit_price", 0),
            tax_amount=data.get("tax_amount", 0),
            tax_percentage=data.get("tax_percentage", 0),
            product_id=data.get("product_id"),
        )


@dataclass
class PaymentInput:
    amount: Any = None
    payment_date: Any = None
    payment_method: str = "cash"
    payment_number: Optional[str] = None
    reference_number: Optional[str] = None

    @classmethod
    def coerce(cls, data):
        if isinstance(data, cls):
            return data
        if not data or not isinstance(data, dict) or "amount" not in data:
            raise ValidationError("Missing or invalid payment data")
        return cls(
            amount=data.get("amount"),
            payment_date=data.get("payment_date"),
            payment_method=data.get("payment_method") or "cash",
            payment_number=data.get("payment_number"),
            reference_number=data.get("reference_number"),
        )

    def validated(self):
        """Normalized copy: Decimal amount, date objects, known method."""
        amount = _non_negative(self.amount, "payment.amount")
        if self.payment_method not in PAYMENT_METHOD_CODES:
            raise ValidationError(f"Unknown payment method: {self.payment_method}")
        return replace(
            self,
            amount=money(amount),
            payment_date=_date(self.payment_date, "payment.payment_date")
            or timezone.localdate(),
            payment_number=_blank_to_none(self.payment_number),
            reference_number=_blank_to_none(self.reference_number),
        )


@dataclass
class InvoiceInput:
    invoice_number: Optional[str] = None
    invoice_date: Any = None
    due_date: Any = None
    total_amount: Any = None
    notes: Optional[str] = None

    @classmethod
    def coerce(cls, data):
        if isinstance(data, cls):
            return data
        data = data or {}
        if not isinstance(data, dict):
            raise ValidationError("Invoice data must be an object")
        return cls(
            invoice_number=data.get("invoice_number"),
            invoice_date=data.get("invoice_date"),
            due_date=data.get("due_date"),
            total_amount=data.get("total_amount"),
            notes=data.get("notes"),
        )


@dataclass
class DocumentGraphRequest:
    company_id: Optional[int]
    customer_id: Optional[int]
    payment: PaymentInput
    invoice: InvoiceInput = field(default_factory=InvoiceInput)
    items: List[LineItemInput] = field(default_factory=list)

    @classmethod
    def from_payload(cls, company_id, customer_id, payment, invoice=None, items=None):
        if not company_id or not customer_id:
            raise ValidationError("Missing company_id or customer_id")
        if items is not None and not isinstance(items, (list, tuple)):
            raise ValidationError("items must be a list")
        return cls(
            company_id=company_id,
            customer_id=customer_id,
            payment=PaymentInput.coerce(payment),
            invoice=InvoiceInput.coerce(invoice),
            items=[LineItemInput.coerce(item) for item in (items or [])],
        )


# ----------------------------
# Drafts (what gets written)
# ----------------------------
@dataclass
class LineDraft:
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    line_total: Decimal
    sort_order: int
    product_id: Optional[int] = None

    def as_fields(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "tax_percentage": self.tax_percentage,
            "tax_amount": self.tax_amount,
            "line_total": self.line_total,
            "sort_order": self.sort_order,
            "product_id": self.product_id,
        }


@dataclass
class InvoiceDraft:
    company_id: int
    customer_id: int
    invoice_number: str
    invoice_date: datetime.date
    due_date: datetime.date
    status: str
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_due: Decimal
    notes: Optional[str]
    created_by: Any = None


@dataclass
class PaymentDraft:
    company_id: int
    payment_number: str
    payment_date: datetime.date
    payment_method: str
    amount: Decimal
    reference_number: Optional[str]
    created_by: Any = None


@dataclass
class ReceiptDraft:
    company_id: int
    receipt_number: str
    receipt_date: datetime.date
    receipt_type: str
    total_amount: Decimal
    excess_amount: Decimal
    excess_handling: str = "pending"
    notes: Optional[str] = None
    created_by: Any = None


@dataclass
class DocumentGraph:
    invoice: Optional[InvoiceDraft]
    items: List[LineDraft]
    payment: PaymentDraft
    allocation_amount: Decimal
    receipt: ReceiptDraft
    receipt_items: List[LineDraft]


# ----------------------------
# Builder
# ----------------------------
def build_line(item: LineItemInput, sort_order: int) -> LineDraft:
    position = f"items[{sort_order - 1}]"
    quantity = _qty(_non_negative(item.quantity, f"{position}.quantity", default=0))
    unit_price = _qty(_non_negative(item.unit_price, f"{position}.unit_price", default=0))
    tax_amount = money(_non_negative(item.tax_amount, f"{position}.tax_amount", default=0))
    tax_percentage = _qty(
        _non_negative(item.tax_percentage, f"{position}.tax_percentage", default=0)
    )
    return LineDraft(
        description=str(item.description or ""),
        quantity=quantity,
        unit_price=unit_price,
        tax_percentage=tax_percentage,
        tax_amount=tax_amount,
        line_total=money(quantity * unit_price + tax_amount),
        sort_order=sort_order,
        product_id=item.product_id,
    )


def validate_graph_request(request: DocumentGraphRequest) -> DocumentGraphRequest:
    """
    Raise ValidationError for anything that would make the graph invalid.
    Runs before any write; returns a normalized copy.
    """
    if not request.company_id or not request.customer_id:
        raise ValidationError("Missing company_id or customer_id")
    payment = request.payment.validated()
    invoice = request.invoice
    if invoice.total_amount not in (None, ""):
        total = money(_non_negative(invoice.total_amount, "invoice.total_amount"))
    else:
        total = None
    invoice = replace(
        invoice,
        invoice_number=_blank_to_none(invoice.invoice_number),
        invoice_date=_date(invoice.invoice_date, "invoice.invoice_date"),
        due_date=_date(invoice.due_date, "invoice.due_date"),
        total_amount=total,
    )
    # validates every line; drafts are rebuilt by the builder
    for index, item in enumerate(request.items, start=1):
        build_line(item, index)
    return replace(request, payment=payment, invoice=invoice)


def build_document_graph(
    request: DocumentGraphRequest,
    *,
    invoice_number,
    payment_number,
    receipt_number,
    created_by=None,
) -> DocumentGraph:
    request = validate_graph_request(request)
    payment_in = request.payment
    invoice_in = request.invoice

    lines = [build_line(item, index) for index, item in enumerate(request.items, start=1)]
    if lines:
        total = sum((line.line_total for line in lines), ZERO)
        tax = sum((line.tax_amount for line in lines), ZERO)
    else:
        total = invoice_in.total_amount if invoice_in.total_amount is not None else ZERO
        tax = ZERO

    # the part of the payment that pays the invoice down; the rest is excess
    applied = min(payment_in.amount, total)
    balance = recompute(total, [applied])
    excess = max(payment_in.amount - total, ZERO)

    invoice_date = invoice_in.invoice_date or payment_in.payment_date
    invoice = InvoiceDraft(
        company_id=request.company_id,
        customer_id=request.customer_id,
        invoice_number=invoice_in.invoice_number or invoice_number,
        invoice_date=invoice_date,
        due_date=invoice_in.due_date or invoice_date,
        status=balance.status,
        subtotal=total - tax,
        tax_amount=tax,
        total_amount=total,
        paid_amount=balance.paid_amount,
        balance_due=balance.balance_due,
        notes=invoice_in.notes or "Direct receipt",
        created_by=created_by,
    )
    payment = PaymentDraft(
        company_id=request.company_id,
        payment_number=payment_in.payment_number or payment_number,
        payment_date=payment_in.payment_date,
        payment_method=payment_in.payment_method,
        amount=payment_in.amount,
        reference_number=payment_in.reference_number,
        created_by=created_by,
    )
    receipt = ReceiptDraft(
        company_id=request.company_id,
        receipt_number=receipt_number,
        receipt_date=payment_in.payment_date,
        receipt_type="direct_receipt",
        total_amount=payment_in.amount,
        excess_amount=excess,
        notes="Direct receipt",
        created_by=created_by,
    )
    return DocumentGraph(
        invoice=invoice,
        items=lines,
        payment=payment,
        allocation_amount=balance.paid_amount,
        receipt=receipt,
        # receipt keeps its own frozen copy of the lines
        receipt_items=[replace(line) for line in lines],
    )


def build_payment_graph(
    invoice,
    payment: PaymentInput,
    *,
    payment_number,
    receipt_number,
    created_by=None,
) -> DocumentGraph:
    """
    Drafts for a further payment against an existing invoice. The receipt
    snapshots the invoice's current lines; only the outstanding balance is
    allocated, the remainder is recorded as excess.
    """
    payment_in = payment.validated()
    outstanding = max(invoice.balance_due, ZERO)
    applied = min(payment_in.amount, outstanding)
    excess = payment_in.amount - applied

    lines = [
        LineDraft(
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            tax_percentage=item.tax_percentage,
            tax_amount=item.tax_amount,
            line_total=item.line_total,
            sort_order=item.sort_order,
            product_id=item.product_id,
        )
        for item in invoice.items.all()
    ]
    return DocumentGraph(
        invoice=None,
        items=[],
        payment=PaymentDraft(
            company_id=invoice.company_id,
            payment_number=payment_in.payment_number or payment_number,
            payment_date=payment_in.payment_date,
            payment_method=payment_in.payment_method,
            amount=payment_in.amount,
            reference_number=payment_in.reference_number,
            created_by=created_by,
        ),
        allocation_amount=applied,
        receipt=ReceiptDraft(
            company_id=invoice.company_id,
            receipt_number=receipt_number,
            receipt_date=payment_in.payment_date,
            receipt_type="invoice_payment",
            total_amount=payment_in.amount,
            excess_amount=excess,
            notes=f"Payment for {invoice.invoice_number}",
            created_by=created_by,
        ),
        receipt_items=lines,
    )
