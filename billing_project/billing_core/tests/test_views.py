import json
from unittest import mock

import pytest
from django.db import OperationalError
from django.test import RequestFactory
from django.utils import timezone

from ..middleware import CurrentCompanyMiddleware
from ..models import Company, Customer, EntityMembership, Invoice, Receipt
from ..services import create_financial_document_graph, documents


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


@pytest.fixture
def tenant(django_user_model):
    company = Company.objects.create(name="Company A")
    user = django_user_model.objects.create_user(
        username="alice", password="pw", default_company=company
    )
    EntityMembership.objects.create(user=user, company=company, role="accountant")
    customer = Customer.objects.create(company=company, name="Acme")
    return company, user, customer


@pytest.fixture
def logged_in(client, tenant):
    client.force_login(tenant[1])
    return client


@pytest.mark.django_db
def test_direct_receipt_created(logged_in, tenant):
    company, _, customer = tenant
    response = post_json(
        logged_in,
        "/api/receipts/direct/",
        {
            "company_id": company.pk,
            "customer_id": customer.pk,
            "payment": {"amount": "1200.00", "payment_method": "bank_transfer"},
            "items": [{"description": "Work", "quantity": 1, "unit_price": "1000"}],
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["ok"] is True
    # Decimals travel as strings
    assert data["excess_amount"] == "200.00"
    assert data["invoice"]["status"] == "paid"
    assert data["payment"]["payment_method"] == "bank_transfer"
    assert Receipt.objects.filter(pk=data["receipt_id"]).exists()


@pytest.mark.django_db
def test_direct_receipt_uses_middleware_company(logged_in, tenant):
    _, _, customer = tenant
    response = post_json(
        logged_in,
        "/api/receipts/direct/",
        {"customer_id": customer.pk, "payment": {"amount": "10"}},
    )
    assert response.status_code == 201
    assert Invoice.objects.get(pk=response.json()["invoice_id"]).company == customer.company


@pytest.mark.django_db
def test_validation_error_is_400(logged_in, tenant):
    company, _, customer = tenant
    response = post_json(
        logged_in,
        "/api/receipts/direct/",
        {"company_id": company.pk, "customer_id": customer.pk, "payment": {"amount": "-1"}},
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation"

    response = logged_in.post("/api/receipts/direct/", data="{not json", content_type="application/json")
    assert response.status_code == 400
    assert not Invoice.objects.exists()


@pytest.mark.django_db
def test_anonymous_is_403(client, tenant):
    company, _, customer = tenant
    response = post_json(
        client,
        "/api/receipts/direct/",
        {"company_id": company.pk, "customer_id": customer.pk, "payment": {"amount": "10"}},
    )
    assert response.status_code == 403
    assert response.json()["kind"] == "unauthorized"


@pytest.mark.django_db
def test_duplicate_number_is_409(logged_in, tenant):
    company, _, customer = tenant
    payload = {
        "company_id": company.pk,
        "customer_id": customer.pk,
        "invoice": {"invoice_number": "INV-FIXED"},
        "payment": {"amount": "10"},
    }
    assert post_json(logged_in, "/api/receipts/direct/", payload).status_code == 201
    response = post_json(logged_in, "/api/receipts/direct/", payload)
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


@pytest.mark.django_db
def test_invoice_payment_and_receipt_reversal(logged_in, tenant):
    company, user, customer = tenant
    created = create_financial_document_graph(
        company.pk, customer.pk, {"amount": "600"},
        items=[{"description": "Work", "quantity": 1, "unit_price": "1000"}], user=user,
    )
    url = f"/api/invoices/{created['invoice_id']}/payments/"
    response = post_json(logged_in, url, {"payment": {"amount": "400"}})
    assert response.status_code == 201
    assert response.json()["invoice"]["status"] == "paid"

    receipt_id = response.json()["receipt_id"]
    response = logged_in.delete(f"/api/receipts/{receipt_id}/")
    assert response.status_code == 200
    assert response.json()["amount_reversed"] == "400.00"
    assert Invoice.objects.get(pk=created["invoice_id"]).status == "partial"


@pytest.mark.django_db
def test_delete_invoice_then_404(logged_in, tenant):
    company, user, customer = tenant
    created = create_financial_document_graph(
        company.pk, customer.pk, {"amount": "10"}, user=user,
    )
    url = f"/api/invoices/{created['invoice_id']}/"

    response = logged_in.delete(url)
    assert response.status_code == 200
    assert response.json()["deleted_payment_count"] == 1

    response = logged_in.delete(url)
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


@pytest.mark.django_db
def test_document_number_endpoints(logged_in):
    year = timezone.localdate().year
    response = logged_in.get("/api/document-numbers/next/", {"document_type": "QT"})
    assert response.json()["document_number"] == f"QT-{year}-0001"

    response = post_json(logged_in, "/api/document-numbers/", {"document_type": "QT"})
    assert response.status_code == 201
    assert response.json()["document_number"] == f"QT-{year}-0001"

    response = post_json(logged_in, "/api/document-numbers/", {"document_type": "NOPE"})
    assert response.status_code == 400

    response = logged_in.get("/api/document-numbers/")
    assert response.status_code == 405


@pytest.mark.django_db
def test_middleware_ignores_foreign_company_in_session(tenant):
    _, user, _ = tenant
    foreign = Company.objects.create(name="Company B")

    request = RequestFactory().get("/")
    request.user = user
    request.session = {"active_company_id": foreign.pk}
    CurrentCompanyMiddleware(lambda r: None).process_request(request)
    assert request.company is None

    request.session = {}
    CurrentCompanyMiddleware(lambda r: None).process_request(request)
    assert request.company == user.default_company


class StatementTimeout(Exception):
    sqlstate = "57014"


@pytest.mark.django_db
def test_timeout_is_504(logged_in):
    exc = OperationalError("canceling statement")
    exc.__cause__ = StatementTimeout()
    with mock.patch.object(documents, "next_document_number", side_effect=exc):
        response = post_json(logged_in, "/api/document-numbers/", {"document_type": "INV"})

    assert response.status_code == 504
    assert response.json()["kind"] == "timeout"
    assert "increment" in response.json()["error"]
