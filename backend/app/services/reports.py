"""Read-side figures derived from the ledger.

Profit-and-loss, cash flow and the dashboard aggregate *posted* transactions
only. Customer and supplier metrics cover every transaction linked to the
counterparty, matching what the detail screens list.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from backend.app.core.exceptions import ValidationError
from backend.app.models.accounting import (
    Category,
    Customer,
    Invoice,
    Receipt,
    Supplier,
    Transaction,
)
from backend.app.models.enums import (
    EXPENSE_TRANSACTION_TYPES,
    CustomerStatus,
    TransactionStatus,
    TransactionType,
)
from backend.app.services.common import get_owned, month_bucket
from backend.app.services.transactions import expense_sum, income_sum, type_sum

MONTHS_OF_HISTORY = 12
RECENT_ACTIVITY_LIMIT = 20
DASHBOARD_RECENT_LIMIT = 10

CUSTOMER_SALE_TYPES = (TransactionType.SALE, TransactionType.INCOME)


def _money(value: Any) -> Decimal:
    return Decimal(str(value or 0))


def _check_period(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValidationError("startDate must not be after endDate")


def _posted_between(business_id: int, start_date: date, end_date: date) -> list[Any]:
    return [
        Transaction.business_id == business_id,
        Transaction.status == TransactionStatus.POSTED,
        Transaction.transaction_date >= start_date,
        Transaction.transaction_date <= end_date,
    ]


# ── Business reports ──────────────────────────────────────────────────────


def profit_and_loss(
    db: Session, business_id: int, start_date: date, end_date: date
) -> dict[str, Any]:
    """Revenue, expenses and net profit for the period, with expenses by category."""
    _check_period(start_date, end_date)
    criteria = _posted_between(business_id, start_date, end_date)

    revenue, expenses = db.query(income_sum(), expense_sum()).filter(*criteria).one()

    amount = func.sum(Transaction.total_amount).label("amount")
    by_category = (
        db.query(Category.name, amount)
        .join(Category, Transaction.category_id == Category.id)
        .filter(*criteria, Transaction.transaction_type.in_(EXPENSE_TRANSACTION_TYPES))
        .group_by(Category.id, Category.name)
        .order_by(amount.desc(), Category.name)
        .all()
    )

    revenue, expenses = _money(revenue), _money(expenses)
    return {
        "period": {"start_date": start_date, "end_date": end_date},
        "revenue": revenue,
        "expenses": expenses,
        "net_profit": revenue - expenses,
        "expenses_by_category": [
            {"category_name": name, "amount": _money(total)} for name, total in by_category
        ],
    }


def cash_flow(
    db: Session, business_id: int, start_date: date, end_date: date
) -> dict[str, Any]:
    """Inflows and outflows for the period, with an oldest-first monthly series."""
    _check_period(start_date, end_date)
    criteria = _posted_between(business_id, start_date, end_date)

    inflows, outflows = db.query(income_sum(), expense_sum()).filter(*criteria).one()

    month = month_bucket(db, Transaction.transaction_date).label("month")
    monthly = (
        db.query(month, income_sum(), expense_sum())
        .filter(*criteria)
        .group_by(month)
        .order_by(month)
        .all()
    )

    inflows, outflows = _money(inflows), _money(outflows)
    return {
        "period": {"start_date": start_date, "end_date": end_date},
        "inflows": inflows,
        "outflows": outflows,
        "net_cash_flow": inflows - outflows,
        "monthly_cash_flow": [
            {"month": m, "inflows": _money(i), "outflows": _money(o)}
            for m, i, o in monthly
        ],
    }


def customer_summary(
    db: Session,
    business_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, Any]:
    """Per-customer sales and payment totals, best customers first.

    Customers without transactions in the window are listed with zeros.
    """
    if start_date and end_date:
        _check_period(start_date, end_date)

    join_on = [
        Transaction.customer_id == Customer.id,
        Transaction.business_id == business_id,
        Transaction.status == TransactionStatus.POSTED,
    ]
    if start_date:
        join_on.append(Transaction.transaction_date >= start_date)
    if end_date:
        join_on.append(Transaction.transaction_date <= end_date)

    total_sales = type_sum(CUSTOMER_SALE_TYPES).label("total_sales")
    rows = (
        db.query(
            Customer.id,
            Customer.name,
            Customer.status,
            Customer.current_balance,
            func.count(Transaction.id),
            total_sales,
            type_sum((TransactionType.PAYMENT,)),
        )
        .outerjoin(Transaction, and_(*join_on))
        .filter(Customer.business_id == business_id)
        .group_by(Customer.id, Customer.name, Customer.status, Customer.current_balance)
        .order_by(total_sales.desc(), Customer.name)
        .all()
    )

    period = None
    if start_date or end_date:
        period = {"start_date": start_date, "end_date": end_date}
    return {
        "customer_summary": [
            {
                "customer_id": customer_id,
                "customer_name": name,
                "status": status,
                "current_balance": _money(balance),
                "transaction_count": count,
                "total_sales": _money(sales),
                "total_payments": _money(payments),
            }
            for customer_id, name, status, balance, count, sales, payments in rows
        ],
        "period": period,
    }


def dashboard(db: Session, business_id: int, today: date | None = None) -> dict[str, Any]:
    """Current-month totals, open receivables, customer counts and latest activity."""
    today = today or date.today()
    month_start = today.replace(day=1)
    month_end = (month_start + timedelta(days=32)).replace(day=1) - timedelta(days=1)

    income, expenses, count = (
        db.query(income_sum(), expense_sum(), func.count(Transaction.id))
        .filter(*_posted_between(business_id, month_start, month_end))
        .one()
    )

    open_count, open_total = (
        db.query(func.count(Invoice.id), func.coalesce(func.sum(Invoice.balance_due), 0))
        .filter(Invoice.business_id == business_id, Invoice.balance_due > 0)
        .one()
    )

    total_customers = (
        db.query(func.count(Customer.id)).filter(Customer.business_id == business_id).scalar()
    )
    active_customers = (
        db.query(func.count(Customer.id))
        .filter(
            Customer.business_id == business_id,
            Customer.status == CustomerStatus.ACTIVE,
        )
        .scalar()
    )

    recent = (
        db.query(Transaction)
        .filter(Transaction.business_id == business_id)
        .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
        .limit(DASHBOARD_RECENT_LIMIT)
        .all()
    )

    return {
        "current_month": month_start.strftime("%Y-%m"),
        "current_month_summary": {
            "income": _money(income),
            "expenses": _money(expenses),
            "transaction_count": count,
        },
        "outstanding_invoices": {"count": open_count, "total_amount": _money(open_total)},
        "customer_count": {"total": total_customers, "active": active_customers},
        "recent_transactions": recent,
    }


# ── Counterparty metrics ──────────────────────────────────────────────────


def _monthly_by_counterparty(
    db: Session,
    criteria: list[Any],
    charge_type: TransactionType,
) -> list[tuple[str, Any, Any, int]]:
    month = month_bucket(db, Transaction.transaction_date).label("month")
    return (
        db.query(
            month,
            type_sum((charge_type,)),
            type_sum((TransactionType.PAYMENT,)),
            func.count(Transaction.id),
        )
        .filter(*criteria)
        .group_by(month)
        .order_by(month.desc())
        .limit(MONTHS_OF_HISTORY)
        .all()
    )


def _transaction_activity(db: Session, criteria: list[Any]) -> list[dict[str, Any]]:
    rows = (
        db.query(Transaction)
        .filter(*criteria)
        .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    return [
        {
            "type": "transaction",
            "id": t.id,
            "date": t.transaction_date,
            "description": t.description,
            "amount": t.total_amount,
            "transaction_type": t.transaction_type.value,
            "status": t.status.value,
        }
        for t in rows
    ]


def _latest(activity: list[dict[str, Any]]) -> list[dict[str, Any]]:
    activity.sort(key=lambda item: (item["date"], item["id"]), reverse=True)
    return activity[:RECENT_ACTIVITY_LIMIT]


def customer_metrics(db: Session, business_id: int, customer_id: int) -> dict[str, Any]:
    customer = get_owned(db, Customer, customer_id, business_id)
    criteria = [
        Transaction.business_id == business_id,
        Transaction.customer_id == customer.id,
    ]

    monthly = _monthly_by_counterparty(db, criteria, TransactionType.SALE)

    invoices = (
        db.query(Invoice)
        .filter(Invoice.business_id == business_id, Invoice.customer_id == customer.id)
        .order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    outstanding = (
        db.query(Invoice)
        .filter(
            Invoice.business_id == business_id,
            Invoice.customer_id == customer.id,
            Invoice.balance_due > 0,
        )
        .order_by(Invoice.due_date.is_(None), Invoice.due_date, Invoice.id)
        .all()
    )

    activity = _transaction_activity(db, criteria) + [
        {
            "type": "invoice",
            "id": i.id,
            "date": i.invoice_date,
            "description": i.invoice_number,
            "amount": i.total_amount,
            "transaction_type": "invoice",
            "status": i.status.value,
        }
        for i in invoices
    ]

    return {
        "monthly_sales": [
            {
                "month": m,
                "sales": _money(sales),
                "payments": _money(payments),
                "transaction_count": count,
            }
            for m, sales, payments, count in monthly
        ],
        "outstanding_invoices": outstanding,
        "recent_activity": _latest(activity),
    }


def supplier_metrics(db: Session, business_id: int, supplier_id: int) -> dict[str, Any]:
    supplier = get_owned(db, Supplier, supplier_id, business_id)
    criteria = [
        Transaction.business_id == business_id,
        Transaction.supplier_id == supplier.id,
    ]

    monthly = _monthly_by_counterparty(db, criteria, TransactionType.PURCHASE)

    receipts = (
        db.query(Receipt)
        .filter(Receipt.business_id == business_id, Receipt.supplier_id == supplier.id)
        .order_by(Receipt.receipt_date.desc(), Receipt.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    activity = _transaction_activity(db, criteria) + [
        {
            "type": "receipt",
            "id": r.id,
            "date": r.receipt_date,
            "description": r.description,
            "amount": r.amount,
            "transaction_type": "receipt",
            "status": "completed",
        }
        for r in receipts
    ]

    return {
        "monthly_purchases": [
            {
                "month": m,
                "purchases": _money(purchases),
                "payments": _money(payments),
                "transaction_count": count,
            }
            for m, purchases, payments, count in monthly
        ],
        "recent_activity": _latest(activity),
    }
