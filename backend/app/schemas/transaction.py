from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from backend.app.models.enums import PaymentMethod, TransactionStatus, TransactionType
from backend.app.schemas.common import Money, ORMModel, Pagination, RequestModel


class TransactionDetailCreate(RequestModel):
    account_id: int
    debit_amount: Decimal = Field(default=Decimal("0"), ge=0)
    credit_amount: Decimal = Field(default=Decimal("0"), ge=0)
    description: str | None = None


class TransactionCreate(RequestModel):
    transaction_date: date
    description: str = Field(min_length=1)
    total_amount: Decimal = Field(ge=Decimal("0.01"))
    transaction_type: TransactionType
    category_id: int | None = None
    customer_id: int | None = None
    supplier_id: int | None = None
    payment_method: PaymentMethod | None = None
    reference_number: str | None = Field(default=None, max_length=100)
    details: list[TransactionDetailCreate] = Field(min_length=1)


class TransactionUpdate(RequestModel):
    """Any subset of the mutable header fields; detail lines are fixed."""

    transaction_date: date | None = None
    description: str | None = Field(default=None, min_length=1)
    total_amount: Decimal | None = Field(default=None, ge=Decimal("0.01"))
    transaction_type: TransactionType | None = None
    category_id: int | None = None
    customer_id: int | None = None
    supplier_id: int | None = None
    payment_method: PaymentMethod | None = None
    reference_number: str | None = Field(default=None, max_length=100)
    status: TransactionStatus | None = None


class TransactionDetailOut(ORMModel):
    id: int
    account_id: int
    account_code: str | None
    account_name: str | None
    debit_amount: Money
    credit_amount: Money
    description: str
    line_number: int


class TransactionOut(ORMModel):
    id: int
    transaction_number: str
    transaction_date: date
    description: str
    reference_number: str | None
    total_amount: Money
    transaction_type: TransactionType
    status: TransactionStatus
    payment_method: PaymentMethod | None
    category_id: int | None
    customer_id: int | None
    supplier_id: int | None
    customer_name: str | None
    supplier_name: str | None
    category_name: str | None
    created_by_name: str | None
    created_at: datetime | None = None


class TransactionDetailResponse(ORMModel):
    transaction: TransactionOut
    details: list[TransactionDetailOut]


class TransactionResponse(ORMModel):
    message: str
    transaction: TransactionOut


class TransactionListSummary(ORMModel):
    total_income: Money
    total_expenses: Money
    total_transactions: int


class TransactionListResponse(ORMModel):
    data: list[TransactionOut]
    pagination: Pagination
    summary: TransactionListSummary


class TypeSummary(ORMModel):
    transaction_type: TransactionType
    count: int
    total_amount: Money


class MonthlyTrend(ORMModel):
    month: str
    income: Money
    expenses: Money
    transaction_count: int


class CategoryTotal(ORMModel):
    category_name: str
    count: int
    total_amount: Money


class TransactionDashboard(ORMModel):
    summary_by_type: list[TypeSummary]
    monthly_trends: list[MonthlyTrend]
    top_categories: list[CategoryTotal]
