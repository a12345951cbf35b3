from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from backend.app.core.exceptions import ConflictError, NotFoundError, StateError
from backend.app.models.accounting import Customer, Invoice, InvoiceItem, Receipt
from backend.app.models.enums import InvoiceStatus
from backend.app.schemas.invoice import InvoiceCreate
from backend.app.services.audit import log_action
from backend.app.services.common import next_document_number, paginate, require_links

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"


def _load(db: Session, business_id: int, invoice_id: int) -> Invoice:
    invoice = (
        db.query(Invoice)
        .options(selectinload(Invoice.customer), selectinload(Invoice.items))
        .filter(Invoice.id == invoice_id, Invoice.business_id == business_id)
        .first()
    )
    if invoice is None:
        raise NotFoundError("Invoice")
    return invoice


def create_invoice(
    db: Session,
    business_id: int,
    user_id: int | None,
    payload: InvoiceCreate,
) -> Invoice:
    """Create a draft invoice; the whole total starts out as balance due."""
    require_links(db, business_id, {Customer: payload.customer_id})

    invoice = Invoice(
        business_id=business_id,
        customer_id=payload.customer_id,
        invoice_number=next_document_number(
            db,
            Invoice.invoice_number,
            Invoice.business_id,
            business_id,
            INVOICE_PREFIX,
        ),
        invoice_date=payload.invoice_date,
        due_date=payload.due_date,
        subtotal=payload.subtotal,
        tax_amount=payload.tax_amount,
        total_amount=payload.total_amount,
        paid_amount=0,
        balance_due=payload.total_amount,
        status=InvoiceStatus.DRAFT,
        notes=payload.notes,
        terms=payload.terms,
        created_by=user_id,
        items=[
            InvoiceItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=(
                    item.line_total
                    if item.line_total is not None
                    else item.quantity * item.unit_price
                ),
                tax_rate=item.tax_rate,
                line_number=number,
            )
            for number, item in enumerate(payload.items, start=1)
        ],
    )
    db.add(invoice)
    db.flush()

    log_action(
        db,
        business_id=business_id,
        user_id=user_id,
        action="CREATE",
        resource_type="invoices",
        resource_id=str(invoice.id),
        changes={"invoice_number": invoice.invoice_number, "total_amount": payload.total_amount},
    )
    db.commit()
    logger.info("Created invoice %s for business %s", invoice.invoice_number, business_id)
    return _load(db, business_id, invoice.id)


def get_invoice(db: Session, business_id: int, invoice_id: int) -> Invoice:
    return _load(db, business_id, invoice_id)


def list_invoices(
    db: Session,
    business_id: int,
    page: int,
    limit: int,
    status: InvoiceStatus | None = None,
    customer_id: int | None = None,
) -> tuple[list[Invoice], int]:
    query = (
        db.query(Invoice)
        .options(selectinload(Invoice.customer))
        .filter(Invoice.business_id == business_id)
    )
    if status:
        query = query.filter(Invoice.status == status)
    if customer_id:
        query = query.filter(Invoice.customer_id == customer_id)
    query = query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
    return paginate(query, page, limit)


def update_invoice_status(
    db: Session,
    business_id: int,
    user_id: int | None,
    invoice_id: int,
    status: InvoiceStatus,
) -> Invoice:
    invoice = _load(db, business_id, invoice_id)
    previous = invoice.status
    invoice.status = status
    log_action(
        db,
        business_id=business_id,
        user_id=user_id,
        action="STATUS_CHANGE",
        resource_type="invoices",
        resource_id=str(invoice.id),
        changes={"from": previous, "to": status},
    )
    db.commit()
    return _load(db, business_id, invoice_id)


def delete_invoice(
    db: Session,
    business_id: int,
    user_id: int | None,
    invoice_id: int,
) -> None:
    invoice = _load(db, business_id, invoice_id)
    if invoice.status != InvoiceStatus.DRAFT:
        raise StateError("Only draft invoices can be deleted")

    has_receipts = (
        db.query(Receipt.id)
        .filter(Receipt.business_id == business_id, Receipt.invoice_id == invoice.id)
        .first()
    )
    if has_receipts:
        raise ConflictError("Cannot delete invoice with existing receipts")

    log_action(
        db,
        business_id=business_id,
        user_id=user_id,
        action="DELETE",
        resource_type="invoices",
        resource_id=str(invoice.id),
        changes={"invoice_number": invoice.invoice_number},
    )
    db.delete(invoice)
    db.commit()
    logger.info("Deleted invoice %s for business %s", invoice_id, business_id)
