from .auditlog import AuditLog
from .credit_note import CreditNote, CreditNoteAllocation
from .customer import Customer
from .entitymembership import Company, EntityMembership, User
from .invoice import Invoice, InvoiceItem
from .item import Product
from .payment import Payment, PaymentAllocation, PaymentAuditLog
from .receipt import Receipt, ReceiptItem
from .sequence import DocumentSequence, DocumentType
from .stock import StockMovement
