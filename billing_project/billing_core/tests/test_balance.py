import datetime
from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from ..models import Invoice, Payment, PaymentAllocation
from ..services.balance import recompute, refresh_invoice_balance
from .helpers import TenantFixture


class RecomputeTests(SimpleTestCase):
    def test_nothing_allocated_is_draft(self):
        result = recompute(Decimal("1000.00"), [])
        self.assertEqual(result.status, "draft")
        self.assertEqual(result.paid_amount, Decimal("0.00"))
        self.assertEqual(result.balance_due, Decimal("1000.00"))

    def test_zero_total_zero_paid_is_draft(self):
        result = recompute(Decimal("0"), [])
        self.assertEqual(result.status, "draft")
        self.assertEqual(result.balance_due, Decimal("0.00"))

    def test_partial(self):
        result = recompute(Decimal("1000.00"), [Decimal("600.00")])
        self.assertEqual(result.status, "partial")
        self.assertEqual(result.paid_amount, Decimal("600.00"))
        self.assertEqual(result.balance_due, Decimal("400.00"))

    def test_fully_paid_by_several_allocations(self):
        result = recompute(Decimal("1000.00"), [Decimal("600.00"), Decimal("400.00")])
        self.assertEqual(result.status, "paid")
        self.assertEqual(result.balance_due, Decimal("0.00"))

    def test_overpaid_within_a_cent_is_paid(self):
        result = recompute(Decimal("100"), [Decimal("100.0001")])
        self.assertEqual(result.status, "paid")
        self.assertEqual(result.balance_due, Decimal("0.00"))

    def test_balance_never_negative(self):
        result = recompute(Decimal("100.00"), [Decimal("150.00")])
        self.assertEqual(result.status, "paid")
        self.assertEqual(result.balance_due, Decimal("0.00"))

    def test_accepts_allocation_rows(self):
        rows = [SimpleNamespace(amount=Decimal("250.00")), SimpleNamespace(amount=Decimal("250.00"))]
        result = recompute(Decimal("1000.00"), rows)
        self.assertEqual(result.paid_amount, Decimal("500.00"))
        self.assertEqual(result.status, "partial")

    def test_paid_plus_balance_equals_total_when_not_overpaid(self):
        for paid in ("0", "0.01", "499.99", "999.99", "1000"):
            with self.subTest(paid=paid):
                result = recompute(Decimal("1000.00"), [Decimal(paid)])
                self.assertEqual(result.paid_amount + result.balance_due, Decimal("1000.00"))


class RefreshInvoiceBalanceTests(TestCase):
    def setUp(self):
        self.tenant = TenantFixture()
        self.invoice = Invoice.objects.create(
            company=self.tenant.company,
            customer=self.tenant.customer,
            invoice_number="INV-T-1",
            invoice_date=datetime.date(2025, 9, 1),
            total_amount=Decimal("1000.00"),
            balance_due=Decimal("1000.00"),
        )

    def pay(self, number, amount):
        payment = Payment.objects.create(
            company=self.tenant.company,
            invoice=self.invoice,
            payment_number=number,
            payment_date=datetime.date(2025, 9, 2),
            amount=Decimal(amount),
        )
        return PaymentAllocation.objects.create(
            payment=payment, invoice=self.invoice, amount=Decimal(amount)
        )

    def test_persists_derived_fields_from_stored_allocations(self):
        self.pay("PAY-T-1", "300.00")
        self.pay("PAY-T-2", "200.00")

        result = refresh_invoice_balance(self.invoice)

        self.invoice.refresh_from_db()
        self.assertEqual(result.status, "partial")
        self.assertEqual(self.invoice.status, "partial")
        self.assertEqual(self.invoice.paid_amount, Decimal("500.00"))
        self.assertEqual(self.invoice.balance_due, Decimal("500.00"))

    def test_back_to_draft_when_allocations_are_gone(self):
        allocation = self.pay("PAY-T-1", "1000.00")
        refresh_invoice_balance(self.invoice)
        self.assertEqual(self.invoice.status, "paid")

        allocation.delete()
        refresh_invoice_balance(self.invoice)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, "draft")
        self.assertEqual(self.invoice.paid_amount, Decimal("0.00"))
        self.assertEqual(self.invoice.balance_due, Decimal("1000.00"))
