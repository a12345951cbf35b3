from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from backend.app.core.exceptions import NotFoundError, ValidationError
from backend.app.models.accounting import Category, Customer, Invoice, Receipt, Supplier
from backend.app.schemas.receipt import ReceiptCreate, ReceiptUpdate
from backend.app.services.common import (
    month_bucket,
    next_document_number,
    paginate,
    require_links,
)
from backend.app.services.ledger import LedgerMutation, apply_receipt_effect

logger = logging.getLogger(__name__)

RECEIPT_PREFIX = "RCP"

_NOT_NULL_FIELDS = {"receipt_date", "amount", "payment_method"}


def _with_links(query: Any) -> Any:
    return query.options(
        selectinload(Receipt.customer),
        selectinload(Receipt.supplier),
        selectinload(Receipt.category),
        selectinload(Receipt.invoice),
        selectinload(Receipt.created_by_user),
    )


def _load(db: Session, business_id: int, receipt_id: int) -> Receipt:
    receipt = (
        _with_links(db.query(Receipt))
        .filter(Receipt.id == receipt_id, Receipt.business_id == business_id)
        .first()
    )
    if receipt is None:
        raise NotFoundError("Receipt")
    return receipt


def _link_map(values: dict[str, Any]) -> dict[type, int | None]:
    return {
        Category: values.get("category_id"),
        Customer: values.get("customer_id"),
        Supplier: values.get("supplier_id"),
        Invoice: values.get("invoice_id"),
    }


def create_receipt(
    db: Session,
    business_id: int,
    user_id: int | None,
    payload: ReceiptCreate,
) -> Receipt:
    """Record a receipt and apply its single-sided balance effect."""
    require_links(db, business_id, _link_map(payload.model_dump()))

    receipt = Receipt(
        business_id=business_id,
        receipt_number=next_document_number(
            db,
            Receipt.receipt_number,
            Receipt.business_id,
            business_id,
            RECEIPT_PREFIX,
        ),
        receipt_date=payload.receipt_date,
        amount=payload.amount,
        payment_method=payload.payment_method,
        reference_number=payload.reference_number,
        description=payload.description,
        category_id=payload.category_id,
        customer_id=payload.customer_id,
        supplier_id=payload.supplier_id,
        invoice_id=payload.invoice_id,
        image_url=payload.image_url,
        created_by=user_id,
    )

    mutation = LedgerMutation(db, business_id, user_id)
    mutation.add(receipt)
    apply_receipt_effect(
        mutation,
        customer_id=payload.customer_id,
        supplier_id=payload.supplier_id,
        invoice_id=payload.invoice_id,
        amount=payload.amount,
    )
    mutation.audit("CREATE", receipt, payload.model_dump())
    mutation.commit()

    logger.info(
        "Recorded receipt %s (%s) for business %s",
        receipt.receipt_number,
        payload.amount,
        business_id,
    )
    return _load(db, business_id, receipt.id)


def update_receipt(
    db: Session,
    business_id: int,
    user_id: int | None,
    receipt_id: int,
    payload: ReceiptUpdate,
) -> Receipt:
    """Apply field changes and move balances by the change in amount.

    The amount difference is applied to the customer, supplier and invoice
    the receipt was linked to *before* this update. Relinking a receipt in
    the same call does not move the old or the new counterparty's balance by
    the full amount.
    """
    receipt = _load(db, business_id, receipt_id)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No valid fields to update")
    for field in _NOT_NULL_FIELDS & changes.keys():
        if changes[field] is None:
            raise ValidationError(f"{field} cannot be null")
    require_links(db, business_id, _link_map(changes))

    old_amount = receipt.amount
    old_links = {
        "customer_id": receipt.customer_id,
        "supplier_id": receipt.supplier_id,
        "invoice_id": receipt.invoice_id,
    }

    mutation = LedgerMutation(db, business_id, user_id)
    new_amount: Decimal | None = changes.get("amount")
    if new_amount is not None and new_amount != old_amount:
        apply_receipt_effect(mutation, amount=new_amount - old_amount, **old_links)

    for field, value in changes.items():
        setattr(receipt, field, value)

    mutation.audit("UPDATE", receipt, changes)
    mutation.commit()
    return _load(db, business_id, receipt_id)


def delete_receipt(
    db: Session,
    business_id: int,
    user_id: int | None,
    receipt_id: int,
) -> None:
    """Reverse the receipt's balance effect on its current links, then delete it."""
    receipt = _load(db, business_id, receipt_id)

    mutation = LedgerMutation(db, business_id, user_id)
    apply_receipt_effect(
        mutation,
        customer_id=receipt.customer_id,
        supplier_id=receipt.supplier_id,
        invoice_id=receipt.invoice_id,
        amount=-receipt.amount,
    )
    mutation.audit(
        "DELETE",
        receipt,
        {"receipt_number": receipt.receipt_number, "amount": receipt.amount},
    )
    mutation.remove(receipt)
    mutation.commit()
    logger.info("Deleted receipt %s for business %s", receipt_id, business_id)


def get_receipt(db: Session, business_id: int, receipt_id: int) -> Receipt:
    return _load(db, business_id, receipt_id)


def _filtered(
    business_id: int,
    *,
    search: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    category_id: int | None = None,
    customer_id: int | None = None,
    supplier_id: int | None = None,
) -> list[Any]:
    criteria: list[Any] = [Receipt.business_id == business_id]
    if search:
        term = f"%{search.strip()}%"
        criteria.append(
            or_(Receipt.description.ilike(term), Receipt.reference_number.ilike(term))
        )
    if start_date:
        criteria.append(Receipt.receipt_date >= start_date)
    if end_date:
        criteria.append(Receipt.receipt_date <= end_date)
    if category_id:
        criteria.append(Receipt.category_id == category_id)
    if customer_id:
        criteria.append(Receipt.customer_id == customer_id)
    if supplier_id:
        criteria.append(Receipt.supplier_id == supplier_id)
    return criteria


def list_receipts(
    db: Session,
    business_id: int,
    page: int,
    limit: int,
    **filters: Any,
) -> tuple[list[Receipt], int, dict[str, Any]]:
    criteria = _filtered(business_id, **filters)
    query = (
        _with_links(db.query(Receipt))
        .filter(*criteria)
        .order_by(Receipt.receipt_date.desc(), Receipt.id.desc())
    )
    items, total = paginate(query, page, limit)

    amount_sum, count, average = (
        db.query(
            func.coalesce(func.sum(Receipt.amount), 0),
            func.count(Receipt.id),
            func.coalesce(func.avg(Receipt.amount), 0),
        )
        .filter(*criteria)
        .one()
    )
    summary = {
        "total_amount": Decimal(str(amount_sum)),
        "total_receipts": count,
        "average_amount": Decimal(str(average)),
    }
    return items, total, summary


def receipt_summary(
    db: Session,
    business_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, list[dict[str, Any]]]:
    criteria = _filtered(business_id, start_date=start_date, end_date=end_date)

    by_method = (
        db.query(
            Receipt.payment_method,
            func.count(Receipt.id),
            func.coalesce(func.sum(Receipt.amount), 0),
        )
        .filter(*criteria)
        .group_by(Receipt.payment_method)
        .all()
    )

    month = month_bucket(db, Receipt.receipt_date).label("month")
    trends = (
        db.query(month, func.coalesce(func.sum(Receipt.amount), 0), func.count(Receipt.id))
        .filter(*criteria)
        .group_by(month)
        .order_by(month.desc())
        .limit(12)
        .all()
    )

    category_total = func.sum(Receipt.amount).label("category_total")
    categories = (
        db.query(Category.name, func.count(Receipt.id), category_total)
        .join(Category, Receipt.category_id == Category.id)
        .filter(*criteria)
        .group_by(Category.id, Category.name)
        .order_by(category_total.desc())
        .limit(10)
        .all()
    )

    return {
        "summary_by_payment_method": [
            {"payment_method": method, "count": count, "total_amount": Decimal(str(total))}
            for method, count, total in by_method
        ],
        "monthly_trends": [
            {"month": m, "total_amount": Decimal(str(total)), "receipt_count": count}
            for m, total, count in trends
        ],
        "top_categories": [
            {"category_name": name, "count": count, "total_amount": Decimal(str(total))}
            for name, count, total in categories
        ],
    }
