from .documents import (allocate_document_number, create_financial_document_graph,
                        delete_invoice_cascade, delete_receipt_cascade,
                        record_invoice_payment)
from .sequence import next_document_number, peek_next_document_number

__all__ = [
    "allocate_document_number",
    "create_financial_document_graph",
    "delete_invoice_cascade",
    "delete_receipt_cascade",
    "next_document_number",
    "peek_next_document_number",
    "record_invoice_payment",
]
