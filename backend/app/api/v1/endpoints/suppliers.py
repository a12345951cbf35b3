from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.deps import PageParams, get_current_user, get_page_params
from backend.app.core.database import get_db
from backend.app.core.exceptions import ConflictError, ValidationError
from backend.app.models.accounting import Receipt, Supplier, Transaction, User
from backend.app.models.enums import SupplierStatus
from backend.app.schemas.common import MessageResponse, page_payload
from backend.app.schemas.reports import SupplierMetrics
from backend.app.schemas.supplier import (
    SupplierCreate,
    SupplierDetailOut,
    SupplierListResponse,
    SupplierReceiptOut,
    SupplierResponse,
    SupplierTransactionOut,
    SupplierUpdate,
)
from backend.app.services import reports as report_service
from backend.app.services.audit import log_action
from backend.app.services.common import get_owned, paginate

router = APIRouter()

RECENT_LIMIT = 10


def _ensure_unique_email(
    db: Session, business_id: int, email: str | None, exclude_id: int | None = None
) -> None:
    if not email:
        return
    query = db.query(Supplier.id).filter(
        Supplier.business_id == business_id, Supplier.email == email
    )
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    if query.first():
        raise ConflictError("Supplier with this email already exists")


def _columns(values: dict[str, Any]) -> dict[str, Any]:
    if "supplier_name" in values:
        values["name"] = values.pop("supplier_name")
    return values


@router.get("", response_model=SupplierListResponse)
def list_suppliers(
    search: str | None = Query(None, description="Search by name, contact, email, or phone"),
    supplier_status: SupplierStatus | None = Query(None, alias="status"),
    paging: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    query = db.query(Supplier).filter(Supplier.business_id == current_user.business_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            Supplier.name.ilike(like)
            | Supplier.contact_person.ilike(like)
            | Supplier.email.ilike(like)
            | Supplier.phone.ilike(like)
        )
    if supplier_status:
        query = query.filter(Supplier.status == supplier_status)
    items, total = paginate(query.order_by(Supplier.name), paging.page, paging.limit)
    return page_payload(items, paging.page, paging.limit, total)


@router.get("/{supplier_id}", response_model=SupplierDetailOut)
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SupplierDetailOut:
    business_id = current_user.business_id
    supplier = get_owned(db, Supplier, supplier_id, business_id)

    transactions = (
        db.query(Transaction)
        .filter(Transaction.business_id == business_id, Transaction.supplier_id == supplier.id)
        .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    receipts = (
        db.query(Receipt)
        .filter(Receipt.business_id == business_id, Receipt.supplier_id == supplier.id)
        .order_by(Receipt.receipt_date.desc(), Receipt.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    detail = SupplierDetailOut.model_validate(supplier)
    detail.recent_transactions = [
        SupplierTransactionOut.model_validate(t) for t in transactions
    ]
    detail.recent_receipts = [SupplierReceiptOut.model_validate(r) for r in receipts]
    return detail


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    business_id = current_user.business_id
    _ensure_unique_email(db, business_id, payload.email)

    values = _columns(payload.model_dump(exclude_none=True))
    supplier = Supplier(business_id=business_id, **values)
    db.add(supplier)
    db.flush()
    log_action(
        db,
        business_id=business_id,
        user_id=current_user.id,
        action="CREATE",
        resource_type="suppliers",
        resource_id=str(supplier.id),
        changes=values,
    )
    db.commit()
    db.refresh(supplier)
    return {"message": "Supplier created successfully", "supplier": supplier}


@router.put("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    business_id = current_user.business_id
    supplier = get_owned(db, Supplier, supplier_id, business_id)

    changes = _columns(payload.model_dump(exclude_unset=True))
    for field in ("name", "status"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    if not changes:
        raise ValidationError("No valid fields to update")
    _ensure_unique_email(db, business_id, changes.get("email"), exclude_id=supplier.id)

    for field, value in changes.items():
        setattr(supplier, field, value)
    log_action(
        db,
        business_id=business_id,
        user_id=current_user.id,
        action="UPDATE",
        resource_type="suppliers",
        resource_id=str(supplier.id),
        changes=changes,
    )
    db.commit()
    db.refresh(supplier)
    return {"message": "Supplier updated successfully", "supplier": supplier}


@router.get("/{supplier_id}/metrics", response_model=SupplierMetrics)
def supplier_metrics(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    return report_service.supplier_metrics(db, current_user.business_id, supplier_id)


@router.delete("/{supplier_id}", response_model=MessageResponse)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    business_id = current_user.business_id
    supplier = get_owned(db, Supplier, supplier_id, business_id)

    referenced = any(
        db.query(model.id)
        .filter(model.business_id == business_id, model.supplier_id == supplier.id)
        .first()
        for model in (Transaction, Receipt)
    )
    if referenced:
        raise ConflictError(
            "Cannot delete supplier with existing transactions or receipts. "
            "Consider deactivating instead."
        )

    log_action(
        db,
        business_id=business_id,
        user_id=current_user.id,
        action="DELETE",
        resource_type="suppliers",
        resource_id=str(supplier.id),
        changes={"name": supplier.name},
    )
    db.delete(supplier)
    db.commit()
    return MessageResponse(message="Supplier deleted successfully")
