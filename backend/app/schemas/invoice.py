from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from backend.app.models.enums import InvoiceStatus
from backend.app.schemas.common import Money, ORMModel, Pagination, RequestModel


class InvoiceItemCreate(RequestModel):
    description: str = Field(min_length=1)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit_price: Decimal = Field(ge=0)
    line_total: Decimal | None = Field(default=None, ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)


class InvoiceCreate(RequestModel):
    customer_id: int
    invoice_date: date
    due_date: date | None = None
    subtotal: Decimal = Field(ge=0)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    total_amount: Decimal = Field(ge=Decimal("0.01"))
    notes: str | None = None
    terms: str | None = None
    items: list[InvoiceItemCreate] = Field(min_length=1)


class InvoiceStatusUpdate(RequestModel):
    status: InvoiceStatus


class InvoiceItemOut(ORMModel):
    id: int
    description: str
    quantity: Money
    unit_price: Money
    line_total: Money
    tax_rate: Money
    line_number: int


class InvoiceOut(ORMModel):
    id: int
    invoice_number: str
    customer_id: int
    customer_name: str | None
    invoice_date: date
    due_date: date | None
    subtotal: Money
    tax_amount: Money
    total_amount: Money
    paid_amount: Money
    balance_due: Money
    status: InvoiceStatus
    notes: str | None
    terms: str | None
    created_at: datetime | None = None


class InvoiceDetailOut(InvoiceOut):
    items: list[InvoiceItemOut] = []


class InvoiceResponse(ORMModel):
    message: str
    invoice: InvoiceDetailOut


class InvoiceListResponse(ORMModel):
    data: list[InvoiceOut]
    pagination: Pagination
