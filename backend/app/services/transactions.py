from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session, selectinload

from backend.app.core.exceptions import NotFoundError, StateError, ValidationError
from backend.app.models.accounting import (
    Account,
    Category,
    Customer,
    Supplier,
    Transaction,
    TransactionDetail,
)
from backend.app.models.enums import (
    EXPENSE_TRANSACTION_TYPES,
    INCOME_TRANSACTION_TYPES,
    TransactionStatus,
    TransactionType,
)
from backend.app.schemas.transaction import TransactionCreate, TransactionUpdate
from backend.app.services.common import (
    month_bucket,
    next_document_number,
    paginate,
    require_links,
)
from backend.app.services.ledger import (
    CounterpartyRole,
    LedgerMutation,
    check_double_entry,
    counterparty_multiplier,
)

logger = logging.getLogger(__name__)

TRANSACTION_PREFIX = "TXN"

# Header columns that may never be cleared by an update
_NOT_NULL_FIELDS = {
    "transaction_date",
    "description",
    "total_amount",
    "transaction_type",
    "status",
}


def _load(db: Session, business_id: int, transaction_id: int) -> Transaction:
    transaction = (
        db.query(Transaction)
        .options(
            selectinload(Transaction.customer),
            selectinload(Transaction.supplier),
            selectinload(Transaction.category),
            selectinload(Transaction.created_by_user),
        )
        .filter(
            Transaction.id == transaction_id,
            Transaction.business_id == business_id,
        )
        .first()
    )
    if transaction is None:
        raise NotFoundError("Transaction")
    return transaction


def _require_accounts(db: Session, business_id: int, account_ids: set[int]) -> None:
    found = {
        row[0]
        for row in db.query(Account.id)
        .filter(Account.business_id == business_id, Account.id.in_(account_ids))
        .all()
    }
    if found != account_ids:
        raise NotFoundError("Account")


def create_transaction(
    db: Session,
    business_id: int,
    user_id: int | None,
    payload: TransactionCreate,
) -> Transaction:
    """Post a balanced transaction and propagate its balance deltas.

    The header is always stored as ``posted``. Each detail line moves its
    account by ``credit - debit``; the linked customer/supplier moves by
    ``total_amount`` times the multiplier from ``COUNTERPARTY_EFFECTS``.
    """
    check_double_entry((d.debit_amount, d.credit_amount) for d in payload.details)

    require_links(
        db,
        business_id,
        {
            Category: payload.category_id,
            Customer: payload.customer_id,
            Supplier: payload.supplier_id,
        },
    )
    _require_accounts(db, business_id, {d.account_id for d in payload.details})

    transaction = Transaction(
        business_id=business_id,
        transaction_number=next_document_number(
            db,
            Transaction.transaction_number,
            Transaction.business_id,
            business_id,
            TRANSACTION_PREFIX,
        ),
        transaction_date=payload.transaction_date,
        description=payload.description,
        reference_number=payload.reference_number,
        total_amount=payload.total_amount,
        transaction_type=payload.transaction_type,
        category_id=payload.category_id,
        customer_id=payload.customer_id,
        supplier_id=payload.supplier_id,
        status=TransactionStatus.POSTED,
        payment_method=payload.payment_method,
        created_by=user_id,
        details=[
            TransactionDetail(
                account_id=line.account_id,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                description=line.description or "",
                line_number=number,
            )
            for number, line in enumerate(payload.details, start=1)
        ],
    )

    mutation = LedgerMutation(db, business_id, user_id)
    mutation.add(transaction)
    for line in payload.details:
        mutation.post_line(line.account_id, line.debit_amount, line.credit_amount)

    for role, counterparty_id in (
        (CounterpartyRole.CUSTOMER, payload.customer_id),
        (CounterpartyRole.SUPPLIER, payload.supplier_id),
    ):
        sign = counterparty_multiplier(payload.transaction_type, role)
        if counterparty_id is not None and sign:
            mutation.adjust_counterparty(role, counterparty_id, payload.total_amount * sign)

    mutation.audit("CREATE", transaction, payload.model_dump())
    mutation.commit()

    logger.info(
        "Posted transaction %s (%s, %s) for business %s",
        transaction.transaction_number,
        payload.transaction_type.value,
        payload.total_amount,
        business_id,
    )
    return _load(db, business_id, transaction.id)


def update_transaction(
    db: Session,
    business_id: int,
    user_id: int | None,
    transaction_id: int,
    payload: TransactionUpdate,
) -> Transaction:
    """Edit header fields of a draft transaction.

    Balances are never re-applied here: only ``create_transaction`` posts
    deltas, and it always posts directly, so drafts carry none.
    """
    transaction = _load(db, business_id, transaction_id)
    if transaction.status != TransactionStatus.DRAFT:
        raise StateError("Only draft transactions can be updated")

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No valid fields to update")
    for field in _NOT_NULL_FIELDS & changes.keys():
        if changes[field] is None:
            raise ValidationError(f"{field} cannot be null")

    require_links(
        db,
        business_id,
        {
            Category: changes.get("category_id"),
            Customer: changes.get("customer_id"),
            Supplier: changes.get("supplier_id"),
        },
    )

    for field, value in changes.items():
        setattr(transaction, field, value)

    mutation = LedgerMutation(db, business_id, user_id)
    mutation.audit("UPDATE", transaction, changes)
    mutation.commit()
    return _load(db, business_id, transaction_id)


def delete_transaction(
    db: Session,
    business_id: int,
    user_id: int | None,
    transaction_id: int,
) -> None:
    transaction = _load(db, business_id, transaction_id)
    if transaction.status != TransactionStatus.DRAFT:
        raise StateError("Only draft transactions can be deleted")

    mutation = LedgerMutation(db, business_id, user_id)
    mutation.audit(
        "DELETE", transaction, {"transaction_number": transaction.transaction_number}
    )
    mutation.remove(transaction)
    mutation.commit()
    logger.info(
        "Deleted draft transaction %s for business %s", transaction_id, business_id
    )


def get_transaction(
    db: Session, business_id: int, transaction_id: int
) -> tuple[Transaction, list[TransactionDetail]]:
    transaction = _load(db, business_id, transaction_id)
    details = (
        db.query(TransactionDetail)
        .options(selectinload(TransactionDetail.account))
        .filter(TransactionDetail.transaction_id == transaction.id)
        .order_by(TransactionDetail.line_number)
        .all()
    )
    return transaction, details


def _filtered(
    business_id: int,
    *,
    search: str | None = None,
    transaction_type: TransactionType | None = None,
    status: TransactionStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    category_id: int | None = None,
) -> list[Any]:
    criteria: list[Any] = [Transaction.business_id == business_id]
    if search:
        term = f"%{search.strip()}%"
        criteria.append(
            or_(
                Transaction.description.ilike(term),
                Transaction.reference_number.ilike(term),
            )
        )
    if transaction_type:
        criteria.append(Transaction.transaction_type == transaction_type)
    if status:
        criteria.append(Transaction.status == status)
    if start_date:
        criteria.append(Transaction.transaction_date >= start_date)
    if end_date:
        criteria.append(Transaction.transaction_date <= end_date)
    if category_id:
        criteria.append(Transaction.category_id == category_id)
    return criteria


def type_sum(types: Iterable[TransactionType]) -> Any:
    """``SUM(total_amount)`` over rows whose type is in ``types``, 0 when empty."""
    return func.coalesce(
        func.sum(
            case(
                (Transaction.transaction_type.in_(tuple(types)), Transaction.total_amount),
                else_=0,
            )
        ),
        0,
    )


def income_sum() -> Any:
    return type_sum(INCOME_TRANSACTION_TYPES)


def expense_sum() -> Any:
    return type_sum(EXPENSE_TRANSACTION_TYPES)


def list_transactions(
    db: Session,
    business_id: int,
    page: int,
    limit: int,
    **filters: Any,
) -> tuple[list[Transaction], int, dict[str, Any]]:
    """Newest-first page of transactions plus totals over the whole filter."""
    criteria = _filtered(business_id, **filters)
    query = (
        db.query(Transaction)
        .options(
            selectinload(Transaction.customer),
            selectinload(Transaction.supplier),
            selectinload(Transaction.category),
            selectinload(Transaction.created_by_user),
        )
        .filter(*criteria)
        .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
    )
    items, total = paginate(query, page, limit)

    income, expenses, count = (
        db.query(income_sum(), expense_sum(), func.count(Transaction.id))
        .filter(*criteria)
        .one()
    )
    summary = {
        "total_income": Decimal(str(income)),
        "total_expenses": Decimal(str(expenses)),
        "total_transactions": count,
    }
    return items, total, summary


def transaction_summary(
    db: Session,
    business_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, list[dict[str, Any]]]:
    """Dashboard figures: totals per type, monthly trend, top categories."""
    criteria = _filtered(business_id, start_date=start_date, end_date=end_date)

    by_type = (
        db.query(
            Transaction.transaction_type,
            func.count(Transaction.id),
            func.coalesce(func.sum(Transaction.total_amount), 0),
        )
        .filter(*criteria)
        .group_by(Transaction.transaction_type)
        .all()
    )

    month = month_bucket(db, Transaction.transaction_date).label("month")
    trends = (
        db.query(month, income_sum(), expense_sum(), func.count(Transaction.id))
        .filter(*criteria)
        .group_by(month)
        .order_by(month.desc())
        .limit(12)
        .all()
    )

    category_total = func.sum(Transaction.total_amount).label("category_total")
    categories = (
        db.query(Category.name, func.count(Transaction.id), category_total)
        .join(Category, Transaction.category_id == Category.id)
        .filter(*criteria)
        .group_by(Category.id, Category.name)
        .order_by(category_total.desc())
        .limit(10)
        .all()
    )

    return {
        "summary_by_type": [
            {
                "transaction_type": t_type,
                "count": count,
                "total_amount": Decimal(str(total)),
            }
            for t_type, count, total in by_type
        ],
        "monthly_trends": [
            {
                "month": m,
                "income": Decimal(str(income)),
                "expenses": Decimal(str(expenses)),
                "transaction_count": count,
            }
            for m, income, expenses, count in trends
        ],
        "top_categories": [
            {"category_name": name, "count": count, "total_amount": Decimal(str(total))}
            for name, count, total in categories
        ],
    }
