from __future__ import annotations

from datetime import date, datetime

from pydantic import EmailStr, Field

from backend.app.models.enums import PaymentMethod, SupplierStatus, TransactionType
from backend.app.schemas.common import Money, ORMModel, Pagination, RequestModel


class SupplierBase(RequestModel):
    contact_person: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    tax_id: str | None = Field(default=None, max_length=50)
    payment_terms: str | None = Field(default=None, max_length=100)
    status: SupplierStatus | None = None
    notes: str | None = None


class SupplierCreate(SupplierBase):
    supplier_name: str = Field(min_length=1, max_length=255)


class SupplierUpdate(SupplierBase):
    supplier_name: str | None = Field(default=None, min_length=1, max_length=255)


class SupplierOut(ORMModel):
    id: int
    name: str
    contact_person: str | None
    email: str | None
    phone: str | None
    address: str | None
    city: str | None
    state: str | None
    country: str | None
    postal_code: str | None
    tax_id: str | None
    payment_terms: str | None
    current_balance: Money
    status: SupplierStatus
    notes: str | None
    created_at: datetime | None = None


class SupplierTransactionOut(ORMModel):
    id: int
    transaction_date: date
    description: str
    total_amount: Money
    transaction_type: TransactionType


class SupplierReceiptOut(ORMModel):
    id: int
    receipt_number: str
    receipt_date: date
    amount: Money
    payment_method: PaymentMethod


class SupplierDetailOut(SupplierOut):
    recent_transactions: list[SupplierTransactionOut] = []
    recent_receipts: list[SupplierReceiptOut] = []


class SupplierResponse(ORMModel):
    message: str
    supplier: SupplierOut


class SupplierListResponse(ORMModel):
    data: list[SupplierOut]
    pagination: Pagination
