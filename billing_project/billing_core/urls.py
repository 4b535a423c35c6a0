from django.urls import path

from . import views

urlpatterns = [
    path("document-numbers/", views.document_number_view, name="document-number"),
    path("document-numbers/next/", views.next_document_number_view, name="document-number-next"),
    path("receipts/direct/", views.direct_receipt_view, name="direct-receipt"),
    path("receipts/<int:receipt_id>/", views.receipt_detail_view, name="receipt-detail"),
    path("invoices/<int:invoice_id>/", views.invoice_detail_view, name="invoice-detail"),
    path(
        "invoices/<int:invoice_id>/payments/",
        views.invoice_payment_view,
        name="invoice-payments",
    ),
]
