import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from ..services.graph import (DocumentGraphRequest, LineItemInput, PaymentInput,
                              build_document_graph, validate_graph_request)

NUMBERS = {
    "invoice_number": "INV-2025-0001",
    "payment_number": "PAY-2025-0001",
    "receipt_number": "REC-2025-0001",
}


def request_for(payment, items=None, invoice=None):
    return DocumentGraphRequest.from_payload(1, 1, payment, invoice, items)


class ValidateGraphRequestTests(SimpleTestCase):
    def test_company_and_customer_are_required(self):
        with self.assertRaises(ValidationError):
            DocumentGraphRequest.from_payload(None, 1, {"amount": "10"})
        with self.assertRaises(ValidationError):
            DocumentGraphRequest.from_payload(1, None, {"amount": "10"})

    def test_payment_is_required(self):
        for payment in (None, {}, {"payment_method": "cash"}, "100"):
            with self.subTest(payment=payment):
                with self.assertRaises(ValidationError):
                    request_for(payment)

    def test_payment_amount_must_be_a_non_negative_number(self):
        for amount in (None, "", "abc", "-1", "NaN", True):
            with self.subTest(amount=amount):
                with self.assertRaises(ValidationError):
                    validate_graph_request(request_for({"amount": amount}))

    def test_unknown_payment_method(self):
        with self.assertRaises(ValidationError):
            validate_graph_request(request_for({"amount": "10", "payment_method": "barter"}))

    def test_negative_item_values_are_rejected(self):
        for field in ("quantity", "unit_price", "tax_amount"):
            with self.subTest(field=field):
                item = {"description": "x", "quantity": 1, "unit_price": 10, field: -1}
                with self.assertRaises(ValidationError):
                    validate_graph_request(request_for({"amount": "10"}, items=[item]))

    def test_items_must_be_a_list_of_objects(self):
        with self.assertRaises(ValidationError):
            request_for({"amount": "10"}, items="not a list")
        with self.assertRaises(ValidationError):
            request_for({"amount": "10"}, items=["not an object"])

    def test_bad_dates(self):
        with self.assertRaises(ValidationError):
            validate_graph_request(request_for({"amount": "10", "payment_date": "31/12/2025"}))

    def test_normalizes_payment(self):
        request = validate_graph_request(
            request_for({"amount": 99.5, "payment_date": "2025-09-17", "payment_number": "  "})
        )
        self.assertEqual(request.payment.amount, Decimal("99.50"))
        self.assertEqual(request.payment.payment_date, datetime.date(2025, 9, 17))
        self.assertEqual(request.payment.payment_method, "cash")
        self.assertIsNone(request.payment.payment_number)


class BuildDocumentGraphTests(SimpleTestCase):
    def setUp(self):
        self.items = [
            {"description": "Consulting", "quantity": 2, "unit_price": "400.00"},
            {"description": "Licence", "quantity": 1, "unit_price": "200.00", "tax_amount": "20.00",
             "tax_percentage": "10"},
        ]

    def test_totals_are_sums_of_lines(self):
        graph = build_document_graph(request_for({"amount": "500"}, items=self.items), **NUMBERS)

        self.assertEqual([line.line_total for line in graph.items],
                         [Decimal("800.00"), Decimal("220.00")])
        self.assertEqual(graph.invoice.total_amount, Decimal("1020.00"))
        self.assertEqual(graph.invoice.tax_amount, Decimal("20.00"))
        self.assertEqual(graph.invoice.subtotal, Decimal("1000.00"))
        self.assertEqual(
            graph.invoice.total_amount, sum(line.line_total for line in graph.items)
        )

    def test_partial_payment(self):
        graph = build_document_graph(request_for({"amount": "500"}, items=self.items), **NUMBERS)

        self.assertEqual(graph.invoice.status, "partial")
        self.assertEqual(graph.invoice.paid_amount, Decimal("500.00"))
        self.assertEqual(graph.invoice.balance_due, Decimal("520.00"))
        self.assertEqual(graph.allocation_amount, Decimal("500.00"))
        self.assertEqual(graph.receipt.excess_amount, Decimal("0.00"))

    def test_overpayment_is_capped_and_the_rest_is_excess(self):
        graph = build_document_graph(request_for({"amount": "1200"}, items=self.items), **NUMBERS)

        self.assertEqual(graph.invoice.status, "paid")
        self.assertEqual(graph.allocation_amount, Decimal("1020.00"))
        self.assertEqual(graph.invoice.paid_amount + graph.invoice.balance_due,
                         graph.invoice.total_amount)
        self.assertEqual(graph.receipt.total_amount, Decimal("1200.00"))
        self.assertEqual(graph.receipt.excess_amount, Decimal("180.00"))

    def test_without_items_total_falls_back_to_invoice_total(self):
        graph = build_document_graph(
            request_for({"amount": "1200"}, invoice={"total_amount": "1000"}), **NUMBERS
        )
        self.assertEqual(graph.invoice.total_amount, Decimal("1000.00"))
        self.assertEqual(graph.receipt.excess_amount, Decimal("200.00"))
        self.assertEqual(graph.items, [])

        exact = build_document_graph(
            request_for({"amount": "1000"}, invoice={"total_amount": "1000"}), **NUMBERS
        )
        self.assertEqual(exact.receipt.excess_amount, Decimal("0.00"))
        self.assertEqual(exact.invoice.status, "paid")

    def test_without_items_or_total_everything_is_excess(self):
        graph = build_document_graph(request_for({"amount": "50"}), **NUMBERS)
        self.assertEqual(graph.invoice.total_amount, Decimal("0.00"))
        self.assertEqual(graph.allocation_amount, Decimal("0.00"))
        self.assertEqual(graph.invoice.status, "draft")
        self.assertEqual(graph.receipt.excess_amount, Decimal("50.00"))

    def test_receipt_items_are_a_separate_copy(self):
        graph = build_document_graph(request_for({"amount": "10"}, items=self.items), **NUMBERS)
        self.assertEqual(
            [line.as_fields() for line in graph.receipt_items],
            [line.as_fields() for line in graph.items],
        )
        self.assertIsNot(graph.receipt_items[0], graph.items[0])

    def test_numbers_and_defaults(self):
        graph = build_document_graph(
            request_for({"amount": "10", "payment_date": "2025-03-04"}), **NUMBERS
        )
        self.assertEqual(graph.invoice.invoice_number, "INV-2025-0001")
        self.assertEqual(graph.payment.payment_number, "PAY-2025-0001")
        self.assertEqual(graph.receipt.receipt_number, "REC-2025-0001")
        self.assertEqual(graph.invoice.invoice_date, datetime.date(2025, 3, 4))
        self.assertEqual(graph.invoice.due_date, datetime.date(2025, 3, 4))
        self.assertEqual(graph.receipt.receipt_type, "direct_receipt")
        self.assertEqual(graph.receipt.notes, "Direct receipt")

    def test_caller_supplied_numbers_are_kept(self):
        graph = build_document_graph(
            request_for(
                {"amount": "10", "payment_number": "P-77"},
                invoice={"invoice_number": "CUSTOM-1"},
            ),
            **NUMBERS,
        )
        self.assertEqual(graph.invoice.invoice_number, "CUSTOM-1")
        self.assertEqual(graph.payment.payment_number, "P-77")

    def test_accepts_typed_inputs(self):
        request = DocumentGraphRequest(
            company_id=1,
            customer_id=2,
            payment=PaymentInput(amount=Decimal("30")),
            items=[LineItemInput(description="a", quantity="3", unit_price="10")],
        )
        graph = build_document_graph(request, **NUMBERS)
        self.assertEqual(graph.invoice.total_amount, Decimal("30.00"))
        self.assertEqual(graph.invoice.customer_id, 2)
        self.assertEqual(graph.invoice.status, "paid")
