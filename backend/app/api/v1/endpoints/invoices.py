from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.deps import PageParams, get_current_user, get_page_params
from backend.app.core.database import get_db
from backend.app.models.accounting import Invoice, User
from backend.app.models.enums import InvoiceStatus
from backend.app.schemas.common import MessageResponse, page_payload
from backend.app.schemas.invoice import (
    InvoiceCreate,
    InvoiceDetailOut,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceStatusUpdate,
)
from backend.app.services import invoices as invoice_service

router = APIRouter()


@router.get("", response_model=InvoiceListResponse)
def list_invoices(
    invoice_status: InvoiceStatus | None = Query(None, alias="status"),
    customer_id: int | None = Query(None, alias="customerId"),
    paging: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    items, total = invoice_service.list_invoices(
        db,
        current_user.business_id,
        paging.page,
        paging.limit,
        status=invoice_status,
        customer_id=customer_id,
    )
    return page_payload(items, paging.page, paging.limit, total)


@router.get("/{invoice_id}", response_model=InvoiceDetailOut)
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Invoice:
    return invoice_service.get_invoice(db, current_user.business_id, invoice_id)


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    invoice = invoice_service.create_invoice(
        db, current_user.business_id, current_user.id, payload
    )
    return {"message": "Invoice created successfully", "invoice": invoice}


@router.put("/{invoice_id}/status", response_model=InvoiceResponse)
def update_invoice_status(
    invoice_id: int,
    payload: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    invoice = invoice_service.update_invoice_status(
        db, current_user.business_id, current_user.id, invoice_id, payload.status
    )
    return {"message": "Invoice status updated successfully", "invoice": invoice}


@router.delete("/{invoice_id}", response_model=MessageResponse)
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    invoice_service.delete_invoice(db, current_user.business_id, current_user.id, invoice_id)
    return MessageResponse(message="Invoice deleted successfully")
