import logging
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.db import DatabaseError, IntegrityError, OperationalError, connection, transaction

from ..exceptions import (BillingError, DocumentNumberConflict, StoreFailure,
                          TransactionTimeout)
from ..models import (Invoice, InvoiceItem, Payment, PaymentAllocation, Receipt,
                      ReceiptItem)
from .balance import refresh_invoice_balance

logger = logging.getLogger(__name__)

# query_canceled (statement_timeout), lock_not_available (lock_timeout)
TIMEOUT_SQLSTATES = {"57014", "55P03"}

# Errors that already carry their meaning; never rewrapped as store failures
PASS_THROUGH = (ValidationError, ObjectDoesNotExist, PermissionDenied, BillingError)


def _is_timeout(exc):
    cause = exc.__cause__
    code = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if code in TIMEOUT_SQLSTATES:
        return True
    message = str(exc).lower()
    return "database is locked" in message or "timeout" in message


def _is_unique_violation(exc):
    message = str(exc).lower()
    return "unique" in message or "duplicate" in message


def _apply_timeouts():
    """Bound lock waits and statements for the rest of the transaction."""
    if connection.vendor != "postgresql":
        # sqlite bounds lock waits through the connection "timeout" option
        return
    ms = str(int(settings.BILLING_TRANSACTION_TIMEOUT_SECONDS * 1000))
    with connection.cursor() as cursor:
        cursor.execute("SELECT set_config('statement_timeout', %s, true)", [ms])
        cursor.execute("SELECT set_config('lock_timeout', %s, true)", [ms])


class AtomicUnit:
    """ Tracks which step of an atomic unit is running so a failure can
        name it. Steps writing a document number map uniqueness violations
        to DocumentNumberConflict. """

    def __init__(self, operation, entity=None, identifier=None):
        self.operation = operation
        self.entity = entity
        self.identifier = identifier
        self.current_step = "begin"

    @contextmanager
    def step(self, name, *, number=None, entity=None):
        self.current_step = name
        try:
            yield
        except IntegrityError as exc:
            if number is not None and _is_unique_violation(exc):
                raise DocumentNumberConflict(entity or name, number, step=name) from exc
            raise

    def describe(self):
        target = self.entity or "record"
        if self.identifier is not None:
            target = f"{target} {self.identifier}"
        return f"{self.operation} ({target}) failed at step '{self.current_step}'"


@contextmanager
def atomic_unit(operation, *, entity=None, identifier=None):
    """
    One all-or-nothing unit against the store.
    Any exception rolls everything back before it reaches the caller;
    database errors are surfaced as StoreFailure / TransactionTimeout.
    """
    unit = AtomicUnit(operation, entity=entity, identifier=identifier)
    try:
        with transaction.atomic():
            _apply_timeouts()
            yield unit
            # anything raised while leaving the block happened at commit
            unit.current_step = "commit"
    except PASS_THROUGH as exc:
        logger.info("%s; rolled back: %s", unit.describe(), exc)
        raise
    except OperationalError as exc:
        logger.error("%s; rolled back: %s", unit.describe(), exc)
        if _is_timeout(exc):
            raise TransactionTimeout(
                f"{unit.describe()}: timed out",
                step=unit.current_step, entity=entity, identifier=identifier,
            ) from exc
        raise StoreFailure(
            f"{unit.describe()}: {exc}",
            step=unit.current_step, entity=entity, identifier=identifier,
        ) from exc
    except DatabaseError as exc:
        logger.error("%s; rolled back: %s", unit.describe(), exc)
        raise StoreFailure(
            f"{unit.describe()}: {exc}",
            step=unit.current_step, entity=entity, identifier=identifier,
        ) from exc


# ----------------------------
# Creation
# ----------------------------
@dataclass
class CreatedDocuments:
    invoice: Invoice
    payment: Payment
    allocation: PaymentAllocation
    receipt: Receipt
    excess_amount: Decimal


def _write_invoice(graph):
    draft = graph.invoice
    invoice = Invoice(
        company_id=draft.company_id,
        customer_id=draft.customer_id,
        invoice_number=draft.invoice_number,
        invoice_date=draft.invoice_date,
        due_date=draft.due_date,
        status=draft.status,
        subtotal=draft.subtotal,
        tax_amount=draft.tax_amount,
        total_amount=draft.total_amount,
        paid_amount=draft.paid_amount,
        balance_due=draft.balance_due,
        notes=draft.notes,
        created_by=draft.created_by,
    )
    invoice.save()
    return invoice


def _write_invoice_items(invoice, lines):
    for line in lines:
        InvoiceItem(invoice=invoice, **line.as_fields()).save()


def _write_payment(graph, invoice):
    draft = graph.payment
    payment = Payment(
        company_id=draft.company_id,
        invoice=invoice,
        payment_number=draft.payment_number,
        payment_date=draft.payment_date,
        payment_method=draft.payment_method,
        amount=draft.amount,
        reference_number=draft.reference_number,
        created_by=draft.created_by,
    )
    payment.save()
    return payment


def _write_allocation(payment, invoice, amount):
    allocation = PaymentAllocation(payment=payment, invoice=invoice, amount=amount)
    allocation.save()
    return allocation


def _write_receipt(graph, payment, invoice):
    draft = graph.receipt
    receipt = Receipt(
        company_id=draft.company_id,
        payment=payment,
        invoice=invoice,
        receipt_number=draft.receipt_number,
        receipt_date=draft.receipt_date,
        receipt_type=draft.receipt_type,
        total_amount=draft.total_amount,
        excess_amount=draft.excess_amount,
        excess_handling=draft.excess_handling,
        notes=draft.notes,
        created_by=draft.created_by,
    )
    receipt.save()
    return receipt


def _write_receipt_items(receipt, lines):
    for line in lines:
        ReceiptItem(receipt=receipt, **line.as_fields()).save()


def write_document_graph(graph) -> CreatedDocuments:
    """
    Write invoice → invoice items → payment → allocation → receipt →
    receipt items, in that order, as one atomic unit.
    """
    with atomic_unit(
        "create_document_graph", entity="Invoice", identifier=graph.invoice.invoice_number
    ) as unit:
        with unit.step("invoice", number=graph.invoice.invoice_number, entity="invoice"):
            invoice = _write_invoice(graph)
        with unit.step("invoice_items"):
            _write_invoice_items(invoice, graph.items)
        with unit.step("payment", number=graph.payment.payment_number, entity="payment"):
            payment = _write_payment(graph, invoice)
        with unit.step("payment_allocation"):
            allocation = _write_allocation(payment, invoice, graph.allocation_amount)
        with unit.step("receipt", number=graph.receipt.receipt_number, entity="receipt"):
            receipt = _write_receipt(graph, payment, invoice)
        with unit.step("receipt_items"):
            _write_receipt_items(receipt, graph.receipt_items)

        # hand back what the store now holds, not the drafts
        with unit.step("reload"):
            created = CreatedDocuments(
                invoice=Invoice.objects.get(pk=invoice.pk),
                payment=Payment.objects.get(pk=payment.pk),
                allocation=allocation,
                receipt=Receipt.objects.get(pk=receipt.pk),
                excess_amount=graph.receipt.excess_amount,
            )
    return created


def write_payment_graph(invoice, graph) -> CreatedDocuments:
    """
    Write payment → allocation → receipt → receipt items against an
    existing (locked) invoice, then recompute the invoice balance.
    """
    with atomic_unit(
        "record_invoice_payment", entity="Invoice", identifier=invoice.pk
    ) as unit:
        with unit.step("payment", number=graph.payment.payment_number, entity="payment"):
            payment = _write_payment(graph, invoice)
        with unit.step("payment_allocation"):
            allocation = _write_allocation(payment, invoice, graph.allocation_amount)
        with unit.step("receipt", number=graph.receipt.receipt_number, entity="receipt"):
            receipt = _write_receipt(graph, payment, invoice)
        with unit.step("receipt_items"):
            _write_receipt_items(receipt, graph.receipt_items)
        with unit.step("recompute_invoice"):
            refresh_invoice_balance(invoice)

        with unit.step("reload"):
            created = CreatedDocuments(
                invoice=Invoice.objects.get(pk=invoice.pk),
                payment=Payment.objects.get(pk=payment.pk),
                allocation=allocation,
                receipt=Receipt.objects.get(pk=receipt.pk),
                excess_amount=graph.receipt.excess_amount,
            )
    return created


# ----------------------------
# Deletion
# ----------------------------
def execute_plan(plan) -> Dict[str, int]:
    """Run every step of a cascade plan, in order, as one atomic unit."""
    counts: Dict[str, int] = {}
    with atomic_unit(plan.operation, entity=plan.entity, identifier=plan.root_id) as unit:
        for step in plan.steps:
            with unit.step(step.name):
                counts[step.name] = step.run()
    logger.debug("%s %s: %s", plan.operation, plan.root_id, counts)
    return counts
