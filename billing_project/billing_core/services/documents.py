"""
Boundary operations of the financial-document engine.

Each function validates its input, checks the caller may mutate the
company's financial records, then runs as one atomic unit. Audit events
are queued for after commit.
"""
import logging

from ..exceptions import DocumentNotFound
from ..models import Company, Customer, DocumentType, Invoice
from ..permissions import require_financial_mutation
from .audit_helper import log_action
from .cascade import plan_invoice_deletion, plan_receipt_deletion
from .coordinator import atomic_unit, execute_plan, write_document_graph, write_payment_graph
from .graph import (DocumentGraphRequest, PaymentInput, build_document_graph,
                    build_payment_graph, validate_graph_request)
from .sequence import next_document_number

logger = logging.getLogger(__name__)


def allocate_document_number(document_type, year=None) -> str:
    """Next gap-free number for a document type and year, e.g. INV-2025-0001."""
    with atomic_unit("allocate_document_number", entity="DocumentSequence",
                     identifier=f"{document_type}/{year}") as unit:
        with unit.step("increment"):
            number = next_document_number(document_type, year)
    logger.info("Allocated %s", number)
    return number


def _created_payload(created):
    return {
        "invoice_id": created.invoice.pk,
        "payment_id": created.payment.pk,
        "receipt_id": created.receipt.pk,
        "allocation_id": created.allocation.pk,
        "excess_amount": created.excess_amount,
        "invoice": created.invoice,
        "payment": created.payment,
        "receipt": created.receipt,
    }


def create_financial_document_graph(
    company_id, customer_id, payment, invoice=None, items=None, *, user
):
    """
    Create invoice, items, payment, allocation and receipt (with its own
    item snapshot) in one unit. Returns ids, the stored rows and the part of
    the payment that exceeded the invoice total.
    """
    request = validate_graph_request(
        DocumentGraphRequest.from_payload(company_id, customer_id, payment, invoice, items)
    )
    company = Company.objects.filter(pk=request.company_id).first()
    if company is None:
        raise DocumentNotFound("Company", request.company_id)
    if not Customer.objects.filter(pk=request.customer_id, company=company).exists():
        raise DocumentNotFound("Customer", request.customer_id)
    actor = require_financial_mutation(user, company)

    logger.info(
        "Creating document graph for company=%s customer=%s amount=%s",
        company.pk, request.customer_id, request.payment.amount,
    )
    with atomic_unit("create_financial_document_graph", entity="Invoice",
                     identifier=request.invoice.invoice_number) as unit:
        # drawn inside the unit: a rollback hands the numbers back
        with unit.step("allocate_numbers"):
            invoice_number = request.invoice.invoice_number or next_document_number(
                DocumentType.INVOICE
            )
            payment_number = request.payment.payment_number or next_document_number(
                DocumentType.PAYMENT
            )
            receipt_number = next_document_number(DocumentType.RECEIPT)

        graph = build_document_graph(
            request,
            invoice_number=invoice_number,
            payment_number=payment_number,
            receipt_number=receipt_number,
            created_by=actor,
        )
        created = write_document_graph(graph)

        log_action(
            action="create",
            instance=created.receipt,
            user=actor,
            company=company,
            changes={
                "invoice_number": created.invoice.invoice_number,
                "payment_number": created.payment.payment_number,
                "receipt_number": created.receipt.receipt_number,
                "amount": created.payment.amount,
                "excess_amount": created.excess_amount,
            },
        )

    logger.info(
        "Created %s / %s / %s (status=%s, excess=%s)",
        created.invoice.invoice_number, created.payment.payment_number,
        created.receipt.receipt_number, created.invoice.status, created.excess_amount,
    )
    return _created_payload(created)


def record_invoice_payment(invoice_id, payment, *, user):
    """
    Record a further payment against an existing invoice: payment,
    allocation (capped at the outstanding balance), receipt and its item
    snapshot, then the invoice balance is recomputed.
    """
    payment_in = PaymentInput.coerce(payment).validated()

    with atomic_unit("record_invoice_payment", entity="Invoice", identifier=invoice_id) as unit:
        with unit.step("lock_invoice"):
            invoice = Invoice.objects.select_for_update().filter(pk=invoice_id).first()
        if invoice is None:
            raise DocumentNotFound("Invoice", invoice_id)
        actor = require_financial_mutation(user, invoice.company)

        with unit.step("allocate_numbers"):
            payment_number = payment_in.payment_number or next_document_number(
                DocumentType.PAYMENT
            )
            receipt_number = next_document_number(DocumentType.RECEIPT)

        graph = build_payment_graph(
            invoice,
            payment_in,
            payment_number=payment_number,
            receipt_number=receipt_number,
            created_by=actor,
        )
        created = write_payment_graph(invoice, graph)

        log_action(
            action="record_payment",
            instance=created.receipt,
            user=actor,
            company=invoice.company,
            changes={
                "invoice_number": created.invoice.invoice_number,
                "amount": created.payment.amount,
                "allocated": created.allocation.amount,
                "status": created.invoice.status,
            },
        )

    logger.info(
        "Recorded %s on %s (paid=%s, balance=%s, status=%s)",
        created.payment.payment_number, created.invoice.invoice_number,
        created.invoice.paid_amount, created.invoice.balance_due, created.invoice.status,
    )
    return _created_payload(created)


def delete_invoice_cascade(invoice_id, *, user):
    """
    Delete an invoice and every row that depends on it. A second call for the
    same id raises DocumentNotFound.
    """
    logger.info("Deleting invoice %s with cascade", invoice_id)
    with atomic_unit("delete_invoice_cascade", entity="Invoice", identifier=invoice_id) as unit:
        with unit.step("plan"):
            plan = plan_invoice_deletion(invoice_id)
        actor = require_financial_mutation(user, plan.company)

        counts = execute_plan(plan)
        log_action(
            action="delete",
            instance=plan.root,
            user=actor,
            company=plan.company,
            changes={"invoice_number": plan.document_number, **counts},
        )

    logger.info("Deleted invoice %s: %s", plan.document_number, counts)
    return {
        "invoice_id": plan.root_id,
        "invoice_number": plan.document_number,
        "deleted_payment_count": len(plan.payment_ids),
        "deleted": counts,
    }


def delete_receipt_cascade(receipt_id, *, user):
    """
    Delete one receipt and reverse its payment; the invoice it paid stays,
    with paid amount, balance and status recomputed.
    """
    logger.info("Deleting receipt %s with cascade", receipt_id)
    with atomic_unit("delete_receipt_cascade", entity="Receipt", identifier=receipt_id) as unit:
        with unit.step("plan"):
            plan = plan_receipt_deletion(receipt_id)
        actor = require_financial_mutation(user, plan.company)

        counts = execute_plan(plan)
        log_action(
            action="reverse",
            instance=plan.root,
            user=actor,
            company=plan.company,
            changes={
                "receipt_number": plan.document_number,
                "amount_reversed": plan.metadata["amount_reversed"],
            },
        )

    logger.info(
        "Deleted receipt %s, reversed %s",
        plan.document_number, plan.metadata["amount_reversed"],
    )
    return {
        "receipt_id": plan.root_id,
        "receipt_number": plan.document_number,
        "invoice_id": plan.metadata["invoice_id"],
        "payment_id": plan.metadata["payment_id"],
        "amount_reversed": plan.metadata["amount_reversed"],
        "deleted": counts,
    }
