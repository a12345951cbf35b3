from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import EmailStr, Field

from backend.app.models.enums import (
    CustomerStatus,
    CustomerType,
    InvoiceStatus,
    TransactionStatus,
    TransactionType,
)
from backend.app.schemas.common import Money, ORMModel, Pagination, RequestModel


class CustomerBase(RequestModel):
    customer_type: CustomerType | None = None
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    tax_id: str | None = Field(default=None, max_length=50)
    credit_limit: Decimal | None = Field(default=None, ge=0)
    status: CustomerStatus | None = None
    notes: str | None = None


class CustomerCreate(CustomerBase):
    customer_name: str = Field(min_length=1, max_length=255)


class CustomerUpdate(CustomerBase):
    customer_name: str | None = Field(default=None, min_length=1, max_length=255)


class CustomerOut(ORMModel):
    id: int
    name: str
    customer_type: CustomerType
    email: str | None
    phone: str | None
    address: str | None
    city: str | None
    state: str | None
    country: str | None
    postal_code: str | None
    tax_id: str | None
    credit_limit: Money | None
    current_balance: Money
    status: CustomerStatus
    notes: str | None
    created_at: datetime | None = None


class CustomerTransactionOut(ORMModel):
    id: int
    transaction_date: date
    description: str
    total_amount: Money
    transaction_type: TransactionType
    status: TransactionStatus


class CustomerInvoiceOut(ORMModel):
    id: int
    invoice_number: str
    invoice_date: date
    due_date: date | None
    total_amount: Money
    paid_amount: Money
    balance_due: Money
    status: InvoiceStatus


class CustomerDetailOut(CustomerOut):
    recent_transactions: list[CustomerTransactionOut] = []
    invoices: list[CustomerInvoiceOut] = []


class CustomerResponse(ORMModel):
    message: str
    customer: CustomerOut


class CustomerListResponse(ORMModel):
    data: list[CustomerOut]
    pagination: Pagination
