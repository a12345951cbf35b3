from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from backend.app.models.enums import PaymentMethod
from backend.app.schemas.common import Money, ORMModel, Pagination, RequestModel


class ReceiptCreate(RequestModel):
    receipt_date: date
    amount: Decimal = Field(ge=Decimal("0.01"))
    payment_method: PaymentMethod
    description: str | None = None
    reference_number: str | None = Field(default=None, max_length=100)
    category_id: int | None = None
    customer_id: int | None = None
    supplier_id: int | None = None
    invoice_id: int | None = None
    image_url: str | None = Field(default=None, max_length=500)


class ReceiptUpdate(RequestModel):
    receipt_date: date | None = None
    amount: Decimal | None = Field(default=None, ge=Decimal("0.01"))
    payment_method: PaymentMethod | None = None
    description: str | None = None
    reference_number: str | None = Field(default=None, max_length=100)
    category_id: int | None = None
    customer_id: int | None = None
    supplier_id: int | None = None
    invoice_id: int | None = None
    image_url: str | None = Field(default=None, max_length=500)


class ReceiptOut(ORMModel):
    id: int
    receipt_number: str
    receipt_date: date
    amount: Money
    payment_method: PaymentMethod
    reference_number: str | None
    description: str | None
    category_id: int | None
    customer_id: int | None
    supplier_id: int | None
    invoice_id: int | None
    image_url: str | None
    customer_name: str | None
    supplier_name: str | None
    category_name: str | None
    invoice_number: str | None
    created_by_name: str | None
    created_at: datetime | None = None


class ReceiptResponse(ORMModel):
    message: str
    receipt: ReceiptOut


class ReceiptListSummary(ORMModel):
    total_amount: Money
    total_receipts: int
    average_amount: Money


class ReceiptListResponse(ORMModel):
    data: list[ReceiptOut]
    pagination: Pagination
    summary: ReceiptListSummary


class PaymentMethodSummary(ORMModel):
    payment_method: PaymentMethod
    count: int
    total_amount: Money


class ReceiptMonthlyTrend(ORMModel):
    month: str
    total_amount: Money
    receipt_count: int


class ReceiptCategoryTotal(ORMModel):
    category_name: str
    count: int
    total_amount: Money


class ReceiptDashboard(ORMModel):
    summary_by_payment_method: list[PaymentMethodSummary]
    monthly_trends: list[ReceiptMonthlyTrend]
    top_categories: list[ReceiptCategoryTotal]
