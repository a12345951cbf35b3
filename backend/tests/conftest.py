"""Shared test fixtures.

Tests run against an in-memory SQLite database. The schema is created before
and dropped after every test, so services are free to commit.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import backend.app.models.accounting  # noqa: F401
from backend.app.api.v1.endpoints.auth import login_limiter
from backend.app.core import security
from backend.app.core.database import Base, SessionLocal, engine, get_db
from backend.app.core.security import create_access_token
from backend.app.main import app
from backend.app.models.accounting import (
    Account,
    Category,
    Customer,
    Invoice,
    InvoiceItem,
    Supplier,
    User,
)
from backend.app.models.enums import CategoryType, CustomerStatus, InvoiceStatus
from backend.app.schemas.auth import RegisterRequest
from backend.app.services.auth import register_user

PASSWORD = "secret123"


# ─── Database ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Yield a session on a freshly created schema; dropped after the test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None, None, None]:
    login_limiter.reset()
    security._revoked_tokens.clear()
    yield
    login_limiter.reset()
    security._revoked_tokens.clear()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Auth helpers ─────────────────────────────────────────────────────────────


def _register(db: Session, email: str, business_name: str) -> User:
    return register_user(
        db,
        RegisterRequest(
            email=email,
            password=PASSWORD,
            first_name="Test",
            last_name="Owner",
            business_name=business_name,
        ),
    )


@pytest.fixture()
def owner(db: Session) -> User:
    """Admin of the primary test business, with the default chart of accounts."""
    return _register(db, "owner@example.com", "Primary Books")


@pytest.fixture()
def outsider(db: Session) -> User:
    """Admin of a second, unrelated business."""
    return _register(db, "outsider@example.com", "Other Books")


@pytest.fixture()
def owner_token(owner: User) -> str:
    return create_access_token(subject=str(owner.id), business_id=owner.business_id)


@pytest.fixture()
def outsider_token(outsider: User) -> str:
    return create_access_token(subject=str(outsider.id), business_id=outsider.business_id)


def auth(token: str) -> dict[str, str]:
    """Return Authorization header dict."""
    return {"Authorization": f"Bearer {token}"}


# ─── Ledger fixtures ──────────────────────────────────────────────────────────


@pytest.fixture()
def accounts(db: Session, owner: User) -> dict[str, Account]:
    """The owner's chart of accounts keyed by code."""
    rows = db.query(Account).filter(Account.business_id == owner.business_id).all()
    return {row.code: row for row in rows}


@pytest.fixture()
def customer(db: Session, owner: User) -> Customer:
    row = Customer(
        business_id=owner.business_id,
        name="Acme Retail",
        email="acme@example.com",
        status=CustomerStatus.ACTIVE,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture()
def supplier(db: Session, owner: User) -> Supplier:
    row = Supplier(business_id=owner.business_id, name="Paper Mill", phone="555-0100")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture()
def category(db: Session, owner: User) -> Category:
    row = Category(
        business_id=owner.business_id, name="Sales", category_type=CategoryType.INCOME
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture()
def invoice(db: Session, owner: User, customer: Customer) -> Invoice:
    row = Invoice(
        business_id=owner.business_id,
        customer_id=customer.id,
        invoice_number="INV-2026-000001",
        invoice_date=date(2026, 3, 1),
        subtotal=Decimal("500"),
        tax_amount=Decimal("0"),
        total_amount=Decimal("500"),
        paid_amount=Decimal("0"),
        balance_due=Decimal("500"),
        status=InvoiceStatus.SENT,
        created_by=owner.id,
        items=[
            InvoiceItem(
                description="Consulting",
                quantity=Decimal("5"),
                unit_price=Decimal("100"),
                line_total=Decimal("500"),
                line_number=1,
            )
        ],
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def balance_of(db: Session, row: object) -> Decimal:
    """Re-read ``current_balance`` from the database."""
    db.refresh(row)
    return row.current_balance  # type: ignore[attr-defined]
