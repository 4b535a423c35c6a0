from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError


class BillingError(Exception):
    """Base class for engine failures that are not validation errors."""
    pass


class InvalidDocumentType(ValidationError):
    """Raised when a document type is not one of DocumentType."""
    pass


class InvalidYear(ValidationError):
    """Raised when a fiscal year is outside the accepted numbering range."""
    pass


class DocumentNotFound(ObjectDoesNotExist):
    """Raised when the invoice/receipt/payment to act on does not exist."""

    def __init__(self, entity, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found with id: {identifier}")


class Unauthorized(PermissionDenied):
    """Raised when the caller may not mutate financial records of a company."""
    pass


class DocumentNumberConflict(BillingError):
    """ Raised when a document number is already taken (uniqueness violation).
        Retryable: allocate a fresh number and try again. """

    def __init__(self, entity, number, step=None):
        self.entity = entity
        self.number = number
        self.step = step
        super().__init__(f"Duplicate {entity} number: {number}")


class StoreFailure(BillingError):
    """ Raised when a read/write against the store fails inside an atomic unit.
        The unit has been rolled back: nothing was changed. """

    def __init__(self, message, *, step=None, entity=None, identifier=None):
        self.step = step
        self.entity = entity
        self.identifier = identifier
        super().__init__(message)


class TransactionTimeout(StoreFailure):
    """Raised when a lock wait or statement exceeded the transaction timeout."""
    pass
