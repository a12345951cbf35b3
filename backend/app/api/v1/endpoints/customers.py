from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.deps import PageParams, get_current_user, get_page_params
from backend.app.core.database import get_db
from backend.app.core.exceptions import ConflictError, ValidationError
from backend.app.models.accounting import Customer, Invoice, Receipt, Transaction, User
from backend.app.models.enums import CustomerStatus, CustomerType
from backend.app.schemas.common import MessageResponse, page_payload
from backend.app.schemas.customer import (
    CustomerCreate,
    CustomerDetailOut,
    CustomerInvoiceOut,
    CustomerListResponse,
    CustomerResponse,
    CustomerTransactionOut,
    CustomerUpdate,
)
from backend.app.schemas.reports import CustomerMetrics
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
    query = db.query(Customer.id).filter(
        Customer.business_id == business_id, Customer.email == email
    )
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    if query.first():
        raise ConflictError("Customer with this email already exists")


def _columns(values: dict[str, Any]) -> dict[str, Any]:
    if "customer_name" in values:
        values["name"] = values.pop("customer_name")
    return values


@router.get("", response_model=CustomerListResponse)
def list_customers(
    search: str | None = Query(None, description="Search by name, email, or phone"),
    customer_status: CustomerStatus | None = Query(None, alias="status"),
    customer_type: CustomerType | None = Query(None, alias="type"),
    paging: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    query = db.query(Customer).filter(Customer.business_id == current_user.business_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            Customer.name.ilike(like)
            | Customer.email.ilike(like)
            | Customer.phone.ilike(like)
        )
    if customer_status:
        query = query.filter(Customer.status == customer_status)
    if customer_type:
        query = query.filter(Customer.customer_type == customer_type)
    items, total = paginate(query.order_by(Customer.name), paging.page, paging.limit)
    return page_payload(items, paging.page, paging.limit, total)


@router.get("/{customer_id}", response_model=CustomerDetailOut)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CustomerDetailOut:
    business_id = current_user.business_id
    customer = get_owned(db, Customer, customer_id, business_id)

    transactions = (
        db.query(Transaction)
        .filter(Transaction.business_id == business_id, Transaction.customer_id == customer.id)
        .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    invoices = (
        db.query(Invoice)
        .filter(Invoice.business_id == business_id, Invoice.customer_id == customer.id)
        .order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    detail = CustomerDetailOut.model_validate(customer)
    detail.recent_transactions = [
        CustomerTransactionOut.model_validate(t) for t in transactions
    ]
    detail.invoices = [CustomerInvoiceOut.model_validate(i) for i in invoices]
    return detail


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    business_id = current_user.business_id
    _ensure_unique_email(db, business_id, payload.email)

    values = _columns(payload.model_dump(exclude_none=True))
    values.setdefault("customer_type", CustomerType.INDIVIDUAL)
    values.setdefault("status", CustomerStatus.LEAD)
    values.setdefault("credit_limit", 0)
    customer = Customer(business_id=business_id, **values)
    db.add(customer)
    db.flush()
    log_action(
        db,
        business_id=business_id,
        user_id=current_user.id,
        action="CREATE",
        resource_type="customers",
        resource_id=str(customer.id),
        changes=values,
    )
    db.commit()
    db.refresh(customer)
    return {"message": "Customer created successfully", "customer": customer}


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    business_id = current_user.business_id
    customer = get_owned(db, Customer, customer_id, business_id)

    changes = _columns(payload.model_dump(exclude_unset=True))
    # name, type and status can be changed but never cleared
    for field in ("name", "customer_type", "status"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    if not changes:
        raise ValidationError("No valid fields to update")
    _ensure_unique_email(db, business_id, changes.get("email"), exclude_id=customer.id)

    for field, value in changes.items():
        setattr(customer, field, value)
    log_action(
        db,
        business_id=business_id,
        user_id=current_user.id,
        action="UPDATE",
        resource_type="customers",
        resource_id=str(customer.id),
        changes=changes,
    )
    db.commit()
    db.refresh(customer)
    return {"message": "Customer updated successfully", "customer": customer}


@router.get("/{customer_id}/metrics", response_model=CustomerMetrics)
def customer_metrics(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    return report_service.customer_metrics(db, current_user.business_id, customer_id)


@router.delete("/{customer_id}", response_model=MessageResponse)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    business_id = current_user.business_id
    customer = get_owned(db, Customer, customer_id, business_id)

    referenced = any(
        db.query(model.id)
        .filter(model.business_id == business_id, model.customer_id == customer.id)
        .first()
        for model in (Transaction, Invoice, Receipt)
    )
    if referenced:
        raise ConflictError(
            "Cannot delete customer with existing transactions or invoices. "
            "Consider deactivating instead."
        )

    log_action(
        db,
        business_id=business_id,
        user_id=current_user.id,
        action="DELETE",
        resource_type="customers",
        resource_id=str(customer.id),
        changes={"name": customer.name},
    )
    db.delete(customer)
    db.commit()
    return MessageResponse(message="Customer deleted successfully")
