from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.deps import PageParams, get_current_user, get_page_params
from backend.app.core.database import get_db
from backend.app.models.accounting import User
from backend.app.models.enums import TransactionStatus, TransactionType
from backend.app.schemas.common import MessageResponse, page_payload
from backend.app.schemas.transaction import (
    TransactionCreate,
    TransactionDashboard,
    TransactionDetailResponse,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)
from backend.app.services import transactions as transaction_service

router = APIRouter()


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    search: str | None = Query(None, description="Search description or reference"),
    transaction_type: TransactionType | None = Query(None, alias="type"),
    transaction_status: TransactionStatus | None = Query(None, alias="status"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    category_id: int | None = Query(None, alias="categoryId"),
    paging: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    items, total, summary = transaction_service.list_transactions(
        db,
        current_user.business_id,
        paging.page,
        paging.limit,
        search=search,
        transaction_type=transaction_type,
        status=transaction_status,
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
    )
    return page_payload(items, paging.page, paging.limit, total, summary=summary)


@router.get("/dashboard/summary", response_model=TransactionDashboard)
def dashboard_summary(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    return transaction_service.transaction_summary(
        db, current_user.business_id, start_date=start_date, end_date=end_date
    )


@router.get("/{transaction_id}", response_model=TransactionDetailResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    transaction, details = transaction_service.get_transaction(
        db, current_user.business_id, transaction_id
    )
    return {"transaction": transaction, "details": details}


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    transaction = transaction_service.create_transaction(
        db, current_user.business_id, current_user.id, payload
    )
    return {"message": "Transaction created successfully", "transaction": transaction}


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    transaction = transaction_service.update_transaction(
        db, current_user.business_id, current_user.id, transaction_id, payload
    )
    return {"message": "Transaction updated successfully", "transaction": transaction}


@router.delete("/{transaction_id}", response_model=MessageResponse)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    transaction_service.delete_transaction(
        db, current_user.business_id, current_user.id, transaction_id
    )
    return MessageResponse(message="Transaction deleted successfully")
