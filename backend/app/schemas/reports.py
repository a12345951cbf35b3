from __future__ import annotations

import datetime as dt
from datetime import date
from typing import Literal

from backend.app.models.enums import CustomerStatus
from backend.app.schemas.common import Money, ORMModel
from backend.app.schemas.customer import CustomerInvoiceOut, CustomerTransactionOut


class Period(ORMModel):
    start_date: date | None
    end_date: date | None


# ─── Business reports ─────────────────────────────────────────────────────────


class CategoryExpense(ORMModel):
    category_name: str
    amount: Money


class ProfitLossReport(ORMModel):
    period: Period
    revenue: Money
    expenses: Money
    net_profit: Money
    expenses_by_category: list[CategoryExpense]


class MonthlyCashFlow(ORMModel):
    month: str
    inflows: Money
    outflows: Money


class CashFlowReport(ORMModel):
    period: Period
    inflows: Money
    outflows: Money
    net_cash_flow: Money
    monthly_cash_flow: list[MonthlyCashFlow]


class CustomerSummaryRow(ORMModel):
    customer_id: int
    customer_name: str
    status: CustomerStatus
    current_balance: Money
    transaction_count: int
    total_sales: Money
    total_payments: Money


class CustomerSummaryReport(ORMModel):
    customer_summary: list[CustomerSummaryRow]
    period: Period | None


class MonthSummary(ORMModel):
    income: Money
    expenses: Money
    transaction_count: int


class OutstandingInvoices(ORMModel):
    count: int
    total_amount: Money


class CustomerCount(ORMModel):
    total: int
    active: int


class DashboardReport(ORMModel):
    current_month: str
    current_month_summary: MonthSummary
    outstanding_invoices: OutstandingInvoices
    customer_count: CustomerCount
    recent_transactions: list[CustomerTransactionOut]


# ─── Counterparty metrics ─────────────────────────────────────────────────────


class ActivityItem(ORMModel):
    type: Literal["transaction", "invoice", "receipt"]
    id: int
    date: dt.date
    description: str | None
    amount: Money
    transaction_type: str
    status: str


class MonthlySales(ORMModel):
    month: str
    sales: Money
    payments: Money
    transaction_count: int


class CustomerMetrics(ORMModel):
    monthly_sales: list[MonthlySales]
    outstanding_invoices: list[CustomerInvoiceOut]
    recent_activity: list[ActivityItem]


class MonthlyPurchases(ORMModel):
    month: str
    purchases: Money
    payments: Money
    transaction_count: int


class SupplierMetrics(ORMModel):
    monthly_purchases: list[MonthlyPurchases]
    recent_activity: list[ActivityItem]
