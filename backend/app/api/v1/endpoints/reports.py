from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_user
from backend.app.core.database import get_db
from backend.app.models.accounting import User
from backend.app.schemas.reports import (
    CashFlowReport,
    CustomerSummaryReport,
    DashboardReport,
    ProfitLossReport,
)
from backend.app.services import reports as report_service

router = APIRouter()


@router.get("/profit-loss", response_model=ProfitLossReport)
def profit_loss(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    return report_service.profit_and_loss(
        db, current_user.business_id, start_date, end_date
    )


@router.get("/cash-flow", response_model=CashFlowReport)
def cash_flow(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    return report_service.cash_flow(db, current_user.business_id, start_date, end_date)


@router.get("/customers", response_model=CustomerSummaryReport)
def customer_summary(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    return report_service.customer_summary(
        db, current_user.business_id, start_date=start_date, end_date=end_date
    )


@router.get("/dashboard", response_model=DashboardReport)
def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    return report_service.dashboard(db, current_user.business_id)
