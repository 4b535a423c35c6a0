from django.db import models


class DocumentType(models.TextChoices):
    """ Short codes partitioning the numbering counters.
        The code is also the number prefix: INV-2025-0001 """
    INVOICE = "INV", "Invoice"
    PROFORMA = "PRO", "Proforma invoice"
    QUOTATION = "QT", "Quotation"
    PURCHASE_ORDER = "PO", "Purchase order"
    LOCAL_PURCHASE_ORDER = "LPO", "Local purchase order"
    DELIVERY_NOTE = "DN", "Delivery note"
    CREDIT_NOTE = "CN", "Credit note"
    PAYMENT = "PAY", "Payment"
    RECEIPT = "REC", "Receipt"
    REMITTANCE_ADVICE = "RA", "Remittance advice"
    REMITTANCE = "REM", "Remittance"


# ---------- Document numbering ----------
class DocumentSequence(models.Model):
    """ One counter per (document type, year).
        Created lazily at 0, only ever incremented under a row lock. """
    document_type = models.CharField(max_length=4, choices=DocumentType.choices)
    year = models.PositiveIntegerField()
    sequence_number = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "document_sequences"
        constraints = [
            models.UniqueConstraint(
                fields=["document_type", "year"], name="uq_document_sequence_type_year"
            ),
        ]
        indexes = [models.Index(fields=["document_type"], name="docseq_type_idx")]

    def __str__(self):
        return f"{self.document_type}-{self.year}: {self.sequence_number}"
