# Aggregates every model so a single import registers the full mapper graph
# (string relationship targets resolve only once all classes are loaded).

from backend.app.models.business import Business
from backend.app.models.user import User
from backend.app.models.account import Account
from backend.app.models.category import Category
from backend.app.models.customer import Customer
from backend.app.models.supplier import Supplier
from backend.app.models.invoice import Invoice, InvoiceItem
from backend.app.models.transaction import Transaction, TransactionDetail
from backend.app.models.receipt import Receipt
from backend.app.models.audit import AuditLog
from backend.app.models.document_counter import DocumentCounter
from backend.app.models.enums import AccountType, RoleEnum

__all__ = [
    "Business",
    "User",
    "Account",
    "AccountType",
    "Category",
    "Customer",
    "Supplier",
    "Invoice",
    "InvoiceItem",
    "Transaction",
    "TransactionDetail",
    "Receipt",
    "AuditLog",
    "DocumentCounter",
    "RoleEnum",
]
