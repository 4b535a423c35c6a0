import datetime
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from ..exceptions import DocumentNotFound, DocumentNumberConflict, StoreFailure, Unauthorized
from ..models import (DocumentSequence, Invoice, InvoiceItem, Payment, PaymentAllocation,
                      PaymentAuditLog, Receipt, ReceiptItem, User)
from ..services import create_financial_document_graph, record_invoice_payment
from .helpers import TenantFixture, items_totalling


class CreateFinancialDocumentGraphTests(TestCase):
    def setUp(self):
        self.tenant = TenantFixture()
        self.year = timezone.localdate().year
        self.items = [
            {"description": "Consulting", "quantity": 2, "unit_price": "400.00"},
            {"description": "Setup", "quantity": 1, "unit_price": "180.00", "tax_amount": "20.00"},
        ]

    def create(self, amount, items=None, invoice=None, user=None, **payment):
        return create_financial_document_graph(
            self.tenant.company.pk,
            self.tenant.customer.pk,
            {"amount": amount, **payment},
            invoice,
            self.items if items is None else items,
            user=user or self.tenant.user,
        )

    def assertNothingWritten(self):
        for model in (Invoice, InvoiceItem, Payment, PaymentAllocation, Receipt, ReceiptItem,
                      PaymentAuditLog):
            self.assertFalse(model.objects.exists(), model.__name__)

    def test_creates_the_whole_graph(self):
        result = self.create("1000.00")

        invoice = Invoice.objects.get(pk=result["invoice_id"])
        payment = Payment.objects.get(pk=result["payment_id"])
        receipt = Receipt.objects.get(pk=result["receipt_id"])
        allocation = PaymentAllocation.objects.get(pk=result["allocation_id"])

        self.assertEqual(invoice.invoice_number, f"INV-{self.year}-0001")
        self.assertEqual(payment.payment_number, f"PAY-{self.year}-0001")
        self.assertEqual(receipt.receipt_number, f"REC-{self.year}-0001")

        self.assertEqual(invoice.items.count(), 2)
        self.assertEqual(receipt.items.count(), 2)
        self.assertEqual(payment.invoice_id, invoice.pk)
        self.assertEqual(receipt.payment_id, payment.pk)
        self.assertEqual(receipt.invoice_id, invoice.pk)
        self.assertEqual((allocation.payment_id, allocation.invoice_id), (payment.pk, invoice.pk))
        self.assertEqual(invoice.created_by, self.tenant.user)
        self.assertEqual(receipt.created_by, self.tenant.user)

        # an allocation always leaves an audit row
        self.assertTrue(
            PaymentAuditLog.objects.filter(
                payment=payment, invoice=invoice, action="allocation_created"
            ).exists()
        )

    def test_conservation(self):
        for amount in ("0", "250.00", "1000.00", "1500.00"):
            with self.subTest(amount=amount):
                result = self.create(amount)
                invoice = result["invoice"]
                lines = InvoiceItem.objects.filter(invoice=invoice)
                self.assertEqual(invoice.total_amount, sum(i.line_total for i in lines))
                self.assertEqual(invoice.paid_amount + invoice.balance_due, invoice.total_amount)
                allocated = sum(a.amount for a in invoice.allocations.all())
                self.assertEqual(invoice.paid_amount, allocated)

    def test_status_follows_payment(self):
        self.assertEqual(self.create("0")["invoice"].status, "draft")
        self.assertEqual(self.create("500")["invoice"].status, "partial")
        self.assertEqual(self.create("1000")["invoice"].status, "paid")

    def test_receipt_items_snapshot_invoice_items(self):
        result = self.create("1000")
        fields = ("description", "quantity", "unit_price", "tax_amount", "line_total", "sort_order")
        self.assertEqual(
            list(result["invoice"].items.values_list(*fields)),
            list(result["receipt"].items.values_list(*fields)),
        )

    def test_receipt_items_cannot_be_edited(self):
        result = self.create("1000")
        item = result["receipt"].items.first()
        item.description = "changed"
        with self.assertRaises(ValidationError):
            item.save()

    def test_excess(self):
        over = self.create("1200", items=items_totalling("1000"))
        self.assertEqual(over["excess_amount"], Decimal("200.00"))
        self.assertEqual(over["receipt"].excess_amount, Decimal("200.00"))
        self.assertEqual(over["receipt"].total_amount, Decimal("1200.00"))
        self.assertEqual(over["payment"].amount, Decimal("1200.00"))
        self.assertEqual(over["invoice"].paid_amount, Decimal("1000.00"))
        self.assertEqual(over["invoice"].balance_due, Decimal("0.00"))

        exact = self.create("1000", items=items_totalling("1000"))
        self.assertEqual(exact["excess_amount"], Decimal("0.00"))
        self.assertEqual(exact["invoice"].status, "paid")

    def test_defaults_from_payment(self):
        result = self.create("10", items=items_totalling("10"), payment_date="2025-02-03")
        self.assertEqual(result["payment"].payment_method, "cash")
        self.assertEqual(result["payment"].payment_date, datetime.date(2025, 2, 3))
        self.assertEqual(result["invoice"].invoice_date, datetime.date(2025, 2, 3))
        self.assertEqual(result["invoice"].due_date, datetime.date(2025, 2, 3))
        self.assertEqual(result["receipt"].receipt_type, "direct_receipt")

    def test_forced_failure_writing_receipt_items_leaves_nothing(self):
        with mock.patch.object(ReceiptItem, "save", side_effect=DatabaseError("disk full")):
            with self.assertRaises(StoreFailure) as ctx:
                self.create("1000")

        self.assertEqual(ctx.exception.step, "receipt_items")
        self.assertNothingWritten()
        # the numbers drawn by the failed unit were handed back
        self.assertEqual(self.create("1000")["invoice"].invoice_number, f"INV-{self.year}-0001")

    def test_duplicate_invoice_number_is_a_conflict(self):
        self.create("10", invoice={"invoice_number": "INV-MANUAL-1"})
        receipts_before = Receipt.objects.count()

        with self.assertRaises(DocumentNumberConflict) as ctx:
            self.create("10", invoice={"invoice_number": "INV-MANUAL-1"})

        self.assertEqual(ctx.exception.number, "INV-MANUAL-1")
        self.assertEqual(ctx.exception.step, "invoice")
        self.assertEqual(Receipt.objects.count(), receipts_before)
        self.assertEqual(Invoice.objects.filter(invoice_number="INV-MANUAL-1").count(), 1)

    def test_validation_happens_before_any_write(self):
        for payment in ({"amount": "-5"}, {"amount": "abc"}, {"amount": "5", "payment_method": "x"}):
            with self.subTest(payment=payment):
                with self.assertRaises(ValidationError):
                    create_financial_document_graph(
                        self.tenant.company.pk, self.tenant.customer.pk, payment,
                        None, self.items, user=self.tenant.user,
                    )
        with self.assertRaises(ValidationError):
            create_financial_document_graph(
                self.tenant.company.pk, None, {"amount": "5"}, user=self.tenant.user
            )
        self.assertNothingWritten()
        self.assertFalse(DocumentSequence.objects.exists())

    def test_unknown_company_or_foreign_customer(self):
        other = TenantFixture(name="Other Co", username="bob")
        with self.assertRaises(DocumentNotFound):
            create_financial_document_graph(
                987654, self.tenant.customer.pk, {"amount": "5"}, user=self.tenant.user
            )
        with self.assertRaises(DocumentNotFound):
            create_financial_document_graph(
                self.tenant.company.pk, other.customer.pk, {"amount": "5"}, user=self.tenant.user
            )
        self.assertNothingWritten()

    def test_caller_without_financial_role_is_refused(self):
        viewer = TenantFixture(name="Viewer Co", username="vic", role="viewer")
        viewer.membership.company = self.tenant.company
        viewer.membership.save()

        with self.assertRaises(Unauthorized):
            self.create("100", user=viewer.user)

        # a member of another company only
        outsider = User.objects.create_user(username="mallory", password="pw")
        with self.assertRaises(Unauthorized):
            self.create("100", user=outsider)

        self.tenant.membership.is_active = False
        self.tenant.membership.save()
        with self.assertRaises(Unauthorized):
            self.create("100")

        self.assertNothingWritten()
        self.assertFalse(DocumentSequence.objects.exists())

    def test_superuser_needs_no_membership(self):
        admin = User.objects.create_superuser(username="root", password="pw")
        result = self.create("100", user=admin)
        self.assertEqual(result["invoice"].created_by, admin)


class RecordInvoicePaymentTests(TestCase):
    def setUp(self):
        self.tenant = TenantFixture()
        self.first = create_financial_document_graph(
            self.tenant.company.pk,
            self.tenant.customer.pk,
            {"amount": "600.00"},
            items=items_totalling("1000"),
            user=self.tenant.user,
        )
        self.invoice_id = self.first["invoice_id"]

    def test_second_payment_completes_the_invoice(self):
        result = record_invoice_payment(self.invoice_id, {"amount": "400.00"}, user=self.tenant.user)

        invoice = result["invoice"]
        self.assertEqual(invoice.paid_amount, Decimal("1000.00"))
        self.assertEqual(invoice.balance_due, Decimal("0.00"))
        self.assertEqual(invoice.status, "paid")
        self.assertEqual(result["receipt"].receipt_type, "invoice_payment")
        self.assertEqual(result["receipt"].items.count(), 1)
        self.assertEqual(Receipt.objects.filter(invoice_id=self.invoice_id).count(), 2)
        self.assertEqual(result["excess_amount"], Decimal("0.00"))

    def test_overpayment_is_capped_at_the_balance(self):
        result = record_invoice_payment(self.invoice_id, {"amount": "500.00"}, user=self.tenant.user)

        allocation = PaymentAllocation.objects.get(pk=result["allocation_id"])
        self.assertEqual(allocation.amount, Decimal("400.00"))
        self.assertEqual(result["excess_amount"], Decimal("100.00"))
        self.assertEqual(result["receipt"].total_amount, Decimal("500.00"))
        self.assertEqual(result["invoice"].paid_amount, Decimal("1000.00"))
        self.assertEqual(result["invoice"].status, "paid")

    def test_missing_invoice(self):
        with self.assertRaises(DocumentNotFound):
            record_invoice_payment(424242, {"amount": "1"}, user=self.tenant.user)
        self.assertEqual(Payment.objects.count(), 1)

    def test_unauthorized(self):
        outsider = User.objects.create_user(username="mallory", password="pw")
        with self.assertRaises(Unauthorized):
            record_invoice_payment(self.invoice_id, {"amount": "1"}, user=outsider)
        self.assertEqual(Payment.objects.count(), 1)
