import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import InvalidDocumentType, InvalidYear
from ..models import DocumentSequence, DocumentType

logger = logging.getLogger(__name__)


def format_document_number(document_type, year, sequence):
    """INV-2025-0007; widths beyond 4 digits are not truncated."""
    return f"{document_type}-{year}-{sequence:04d}"


def resolve_document_type(document_type):
    value = getattr(document_type, "value", document_type)
    if value not in DocumentType.values:
        raise InvalidDocumentType(
            f"Invalid document type: {document_type}. "
            f"Valid types are: {', '.join(DocumentType.values)}"
        )
    return value


def resolve_year(year=None):
    current_year = timezone.localdate().year
    if year is None or year == "":
        return current_year
    if isinstance(year, bool):
        raise InvalidYear(f"Invalid year: {year}")
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise InvalidYear(f"Invalid year: {year}")
    max_year = current_year + settings.BILLING_MAX_YEARS_AHEAD
    if year < settings.BILLING_MIN_DOCUMENT_YEAR or year > max_year:
        raise InvalidYear(f"Invalid year: {year}")
    return year


def next_document_number(document_type, year=None):
    """
    Issue the next number for (document_type, year).

    The counter row is locked and incremented inside the caller's
    transaction, so the lock is held until the outermost atomic block
    commits and a rollback also gives the number back.
    """
    code = resolve_document_type(document_type)
    year = resolve_year(year)

    with transaction.atomic():
        # created lazily at 0; a concurrent insert is absorbed by get_or_create
        DocumentSequence.objects.get_or_create(document_type=code, year=year)

        # Exclusive row lock before reading: no two callers see the same value
        counter = DocumentSequence.objects.select_for_update().get(
            document_type=code, year=year
        )
        DocumentSequence.objects.filter(pk=counter.pk).update(
            sequence_number=F("sequence_number") + 1,
            updated_at=timezone.now(),
        )
        counter.refresh_from_db(fields=["sequence_number"])

    number = format_document_number(code, year, counter.sequence_number)
    logger.debug("Allocated document number %s", number)
    return number


def peek_next_document_number(document_type, year=None):
    """Number the next allocation would return. Takes no lock, writes nothing."""
    code = resolve_document_type(document_type)
    year = resolve_year(year)
    current = (
        DocumentSequence.objects.filter(document_type=code, year=year)
        .values_list("sequence_number", flat=True)
        .first()
    )
    return format_document_number(code, year, (current or 0) + 1)
