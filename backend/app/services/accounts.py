from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from backend.app.core.exceptions import ConflictError
from backend.app.models.accounting import Account, AccountType, Category
from backend.app.schemas.accounts import AccountCreate, CategoryCreate
from backend.app.services.audit import log_action

logger = logging.getLogger(__name__)

# Chart of accounts created with every new business
DEFAULT_ACCOUNTS: list[tuple[str, str, AccountType, str | None]] = [
    # Assets
    ("1000", "Cash", AccountType.ASSET, "current_asset"),
    ("1100", "Bank", AccountType.ASSET, "current_asset"),
    ("1200", "Accounts Receivable", AccountType.ASSET, "current_asset"),
    # Liabilities
    ("2000", "Accounts Payable", AccountType.LIABILITY, "current_liability"),
    ("2100", "Sales Tax Payable", AccountType.LIABILITY, "current_liability"),
    # Equity
    ("3000", "Owner's Equity", AccountType.EQUITY, None),
    # Income
    ("4000", "Sales Revenue", AccountType.INCOME, "operating_income"),
    ("4100", "Other Income", AccountType.INCOME, None),
    # Expenses
    ("5000", "Cost of Goods Sold", AccountType.EXPENSE, None),
    ("5100", "Rent", AccountType.EXPENSE, "operating_expense"),
    ("5200", "Utilities", AccountType.EXPENSE, "operating_expense"),
    ("5300", "Salaries & Wages", AccountType.EXPENSE, "operating_expense"),
    ("5400", "Office Supplies", AccountType.EXPENSE, "operating_expense"),
]


def seed_chart_of_accounts(db: Session, business_id: int) -> list[Account]:
    """Add the default accounts for a business. Does not commit."""
    accounts = [
        Account(
            business_id=business_id,
            code=code,
            name=name,
            account_type=account_type,
            account_subtype=subtype,
        )
        for code, name, account_type, subtype in DEFAULT_ACCOUNTS
    ]
    db.add_all(accounts)
    return accounts


def list_accounts(db: Session, business_id: int) -> list[Account]:
    return (
        db.query(Account)
        .filter(Account.business_id == business_id)
        .order_by(Account.code)
        .all()
    )


def create_account(
    db: Session,
    business_id: int,
    user_id: int | None,
    payload: AccountCreate,
) -> Account:
    existing = (
        db.query(Account)
        .filter(Account.business_id == business_id, Account.code == payload.code)
        .first()
    )
    if existing:
        raise ConflictError(f"Account code '{payload.code}' already exists")

    account = Account(
        business_id=business_id,
        code=payload.code,
        name=payload.name,
        account_type=payload.account_type,
        account_subtype=payload.account_subtype,
    )
    db.add(account)
    db.flush()

    log_action(
        db,
        business_id=business_id,
        user_id=user_id,
        action="CREATE",
        resource_type="accounts",
        resource_id=str(account.id),
        changes=payload.model_dump(),
    )
    db.commit()
    db.refresh(account)
    logger.info("Created account %s for business %s", account.code, business_id)
    return account


def list_categories(db: Session, business_id: int) -> list[Category]:
    return (
        db.query(Category)
        .filter(Category.business_id == business_id)
        .order_by(Category.name)
        .all()
    )


def create_category(db: Session, business_id: int, payload: CategoryCreate) -> Category:
    category = Category(
        business_id=business_id,
        name=payload.name,
        category_type=payload.category_type,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    return category
