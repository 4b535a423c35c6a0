import functools
import json
import logging

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .exceptions import DocumentNumberConflict, StoreFailure, TransactionTimeout
from .services import (allocate_document_number, create_financial_document_graph,
                       delete_invoice_cascade, delete_receipt_cascade,
                       peek_next_document_number, record_invoice_payment)

logger = logging.getLogger(__name__)


def _error(kind, message, status):
    return JsonResponse({"ok": False, "error": message, "kind": kind}, status=status)


def _validation_message(exc):
    return "; ".join(exc.messages) if hasattr(exc, "messages") else str(exc)


def json_errors(view):
    """Translate engine errors into JSON responses with a matching status."""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ValidationError as e:
            return _error("validation", _validation_message(e), 400)
        except PermissionDenied as e:
            return _error("unauthorized", str(e) or "Forbidden", 403)
        except ObjectDoesNotExist as e:
            return _error("not_found", str(e), 404)
        except DocumentNumberConflict as e:
            return _error("conflict", str(e), 409)
        except TransactionTimeout as e:
            return _error("timeout", str(e), 504)
        except StoreFailure as e:
            # timeout is a StoreFailure too; caught above
            return _error("store_failure", str(e), 500)

    return wrapper


def _json_body(request):
    if not request.body:
        return {}
    try:
        body = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


# ----------------------------
# Serialization
# ----------------------------
def invoice_data(invoice):
    return {
        "id": invoice.pk,
        "invoice_number": invoice.invoice_number,
        "customer_id": invoice.customer_id,
        "invoice_date": invoice.invoice_date,
        "due_date": invoice.due_date,
        "status": invoice.status,
        "subtotal": invoice.subtotal,
        "tax_amount": invoice.tax_amount,
        "total_amount": invoice.total_amount,
        "paid_amount": invoice.paid_amount,
        "balance_due": invoice.balance_due,
    }


def payment_data(payment):
    return {
        "id": payment.pk,
        "payment_number": payment.payment_number,
        "invoice_id": payment.invoice_id,
        "payment_date": payment.payment_date,
        "payment_method": payment.payment_method,
        "amount": payment.amount,
        "reference_number": payment.reference_number,
    }


def receipt_data(receipt):
    return {
        "id": receipt.pk,
        "receipt_number": receipt.receipt_number,
        "invoice_id": receipt.invoice_id,
        "payment_id": receipt.payment_id,
        "receipt_date": receipt.receipt_date,
        "receipt_type": receipt.receipt_type,
        "total_amount": receipt.total_amount,
        "excess_amount": receipt.excess_amount,
    }


def _created_response(result, status=201):
    # JsonResponse's encoder handles Decimal and dates
    return JsonResponse(
        {
            "ok": True,
            "invoice_id": result["invoice_id"],
            "payment_id": result["payment_id"],
            "receipt_id": result["receipt_id"],
            "allocation_id": result["allocation_id"],
            "excess_amount": result["excess_amount"],
            "invoice": invoice_data(result["invoice"]),
            "payment": payment_data(result["payment"]),
            "receipt": receipt_data(result["receipt"]),
        },
        status=status,
    )


# ----------------------------
# Endpoints
# ----------------------------
@require_POST
@json_errors
def document_number_view(request):
    body = _json_body(request)
    number = allocate_document_number(body.get("document_type"), body.get("year"))
    return JsonResponse({"ok": True, "document_number": number}, status=201)


@require_GET
@json_errors
def next_document_number_view(request):
    number = peek_next_document_number(
        request.GET.get("document_type"), request.GET.get("year")
    )
    return JsonResponse({"ok": True, "document_number": number})


@require_POST
@json_errors
def direct_receipt_view(request):
    body = _json_body(request)
    # company from the body, else the one the middleware attached
    company_id = body.get("company_id") or getattr(
        getattr(request, "company", None), "pk", None
    )
    result = create_financial_document_graph(
        company_id,
        body.get("customer_id"),
        body.get("payment"),
        body.get("invoice"),
        body.get("items"),
        user=request.user,
    )
    return _created_response(result)


@require_POST
@json_errors
def invoice_payment_view(request, invoice_id):
    body = _json_body(request)
    result = record_invoice_payment(invoice_id, body.get("payment", body), user=request.user)
    return _created_response(result)


@require_http_methods(["DELETE"])
@json_errors
def invoice_detail_view(request, invoice_id):
    result = delete_invoice_cascade(invoice_id, user=request.user)
    return JsonResponse({"ok": True, **result})


@require_http_methods(["DELETE"])
@json_errors
def receipt_detail_view(request, receipt_id):
    result = delete_receipt_cascade(receipt_id, user=request.user)
    return JsonResponse({"ok": True, **result})
