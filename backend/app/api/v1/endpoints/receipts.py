from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.deps import PageParams, get_current_user, get_page_params
from backend.app.core.database import get_db
from backend.app.models.accounting import Receipt, User
from backend.app.schemas.common import MessageResponse, page_payload
from backend.app.schemas.receipt import (
    ReceiptCreate,
    ReceiptDashboard,
    ReceiptListResponse,
    ReceiptOut,
    ReceiptResponse,
    ReceiptUpdate,
)
from backend.app.services import receipts as receipt_service

router = APIRouter()


@router.get("", response_model=ReceiptListResponse)
def list_receipts(
    search: str | None = Query(None, description="Search description or reference"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    category_id: int | None = Query(None, alias="categoryId"),
    customer_id: int | None = Query(None, alias="customerId"),
    supplier_id: int | None = Query(None, alias="supplierId"),
    paging: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    items, total, summary = receipt_service.list_receipts(
        db,
        current_user.business_id,
        paging.page,
        paging.limit,
        search=search,
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        customer_id=customer_id,
        supplier_id=supplier_id,
    )
    return page_payload(items, paging.page, paging.limit, total, summary=summary)


@router.get("/dashboard/summary", response_model=ReceiptDashboard)
def dashboard_summary(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    return receipt_service.receipt_summary(
        db, current_user.business_id, start_date=start_date, end_date=end_date
    )


@router.get("/{receipt_id}", response_model=ReceiptOut)
def get_receipt(
    receipt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Receipt:
    return receipt_service.get_receipt(db, current_user.business_id, receipt_id)


@router.post("", response_model=ReceiptResponse, status_code=status.HTTP_201_CREATED)
def create_receipt(
    payload: ReceiptCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    receipt = receipt_service.create_receipt(
        db, current_user.business_id, current_user.id, payload
    )
    return {"message": "Receipt created successfully", "receipt": receipt}


@router.put("/{receipt_id}", response_model=ReceiptResponse)
def update_receipt(
    receipt_id: int,
    payload: ReceiptUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    receipt = receipt_service.update_receipt(
        db, current_user.business_id, current_user.id, receipt_id, payload
    )
    return {"message": "Receipt updated successfully", "receipt": receipt}


@router.delete("/{receipt_id}", response_model=MessageResponse)
def delete_receipt(
    receipt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    receipt_service.delete_receipt(db, current_user.business_id, current_user.id, receipt_id)
    return MessageResponse(message="Receipt deleted successfully")
