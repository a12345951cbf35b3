from __future__ import annotations

from datetime import datetime

from pydantic import Field

from backend.app.models.enums import AccountType, CategoryType
from backend.app.schemas.common import Money, ORMModel, RequestModel


class AccountCreate(RequestModel):
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=255)
    account_type: AccountType
    account_subtype: str | None = Field(default=None, max_length=100)


class AccountOut(ORMModel):
    id: int
    code: str
    name: str
    account_type: AccountType
    account_subtype: str | None
    current_balance: Money
    is_active: bool
    created_at: datetime | None = None


class CategoryCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    category_type: CategoryType | None = None


class CategoryOut(ORMModel):
    id: int
    name: str
    category_type: CategoryType | None
