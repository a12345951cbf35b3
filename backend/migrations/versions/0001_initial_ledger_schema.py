"""Initial ledger schema.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None

PAYMENT_METHODS = ("cash", "check", "bank_transfer", "credit_card", "other")

_ENUM_NAMES = (
    "roleenum",
    "accounttype",
    "categorytype",
    "customertype",
    "customerstatus",
    "supplierstatus",
    "invoicestatus",
    "transactiontype",
    "transactionstatus",
    "paymentmethod",
)


def _money(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=20, scale=4), **kwargs)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
    ]


def _payment_method() -> sa.Enum:
    # Used by two tables; the PostgreSQL type is created once up front
    return sa.Enum(*PAYMENT_METHODS, name="paymentmethod").with_variant(
        postgresql.ENUM(*PAYMENT_METHODS, name="paymentmethod", create_type=False),
        "postgresql",
    )


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        postgresql.ENUM(*PAYMENT_METHODS, name="paymentmethod").create(bind, checkfirst=True)

    op.create_table(
        "businesses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column(
            "role",
            sa.Enum("admin", "accountant", "user", name="roleenum"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
    )
    op.create_index("ix_users_business", "users", ["business_id"])

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "account_type",
            sa.Enum("asset", "liability", "equity", "income", "expense", name="accounttype"),
            nullable=False,
        ),
        sa.Column("account_subtype", sa.String(100), nullable=True),
        _money("current_balance", nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.UniqueConstraint("business_id", "code", name="uq_accounts_business_code"),
    )
    op.create_index("ix_accounts_business", "accounts", ["business_id"])
    op.create_index("ix_accounts_type", "accounts", ["account_type"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "category_type",
            sa.Enum("income", "expense", name="categorytype"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
    )
    op.create_index("ix_categories_business", "categories", ["business_id"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "customer_type",
            sa.Enum("individual", "business", name="customertype"),
            nullable=False,
        ),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("tax_id", sa.String(50), nullable=True),
        _money("credit_limit", nullable=True),
        _money("current_balance", nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum("active", "inactive", "lead", name="customerstatus"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_customers_business", "customers", ["business_id"])
    op.create_index("ix_customers_name", "customers", ["name"])
    op.create_index("ix_customers_email", "customers", ["email"])

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("tax_id", sa.String(50), nullable=True),
        sa.Column("payment_terms", sa.String(100), nullable=True),
        _money("current_balance", nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum("active", "inactive", name="supplierstatus"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_suppliers_business", "suppliers", ["business_id"])
    op.create_index("ix_suppliers_name", "suppliers", ["name"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        _money("subtotal", nullable=False, server_default="0"),
        _money("tax_amount", nullable=False, server_default="0"),
        _money("total_amount", nullable=False),
        _money("paid_amount", nullable=False, server_default="0"),
        _money("balance_due", nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum("draft", "sent", "paid", "overdue", "cancelled", name="invoicestatus"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("terms", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("business_id", "invoice_number", name="uq_invoices_business_number"),
    )
    op.create_index("ix_invoices_customer", "invoices", ["customer_id"])
    op.create_index("ix_invoices_status", "invoices", ["status"])

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "invoice_id",
            sa.Integer(),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        _money("quantity", nullable=False, server_default="1"),
        _money("unit_price", nullable=False),
        _money("line_total", nullable=False),
        sa.Column("tax_rate", sa.Numeric(precision=9, scale=4), nullable=False, server_default="0"),
        sa.Column("line_number", sa.Integer(), nullable=False),
    )
    op.create_index("ix_invoice_items_invoice", "invoice_items", ["invoice_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("transaction_number", sa.String(50), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("reference_number", sa.String(100), nullable=True),
        _money("total_amount", nullable=False),
        sa.Column(
            "transaction_type",
            sa.Enum(
                "income", "expense", "sale", "purchase", "payment", "receipt", "journal",
                name="transactiontype",
            ),
            nullable=False,
        ),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id"), nullable=True),
        sa.Column(
            "status",
            sa.Enum("draft", "posted", "cancelled", name="transactionstatus"),
            nullable=False,
        ),
        sa.Column("payment_method", _payment_method(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "business_id", "transaction_number", name="uq_transactions_business_number"
        ),
        sa.CheckConstraint("total_amount > 0", name="ck_transactions_total_positive"),
    )
    op.create_index(
        "ix_transactions_business_date", "transactions", ["business_id", "transaction_date"]
    )
    op.create_index("ix_transactions_customer", "transactions", ["customer_id"])
    op.create_index("ix_transactions_supplier", "transactions", ["supplier_id"])

    op.create_table(
        "transaction_details",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        _money("debit_amount", nullable=False, server_default="0"),
        _money("credit_amount", nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.CheckConstraint("debit_amount >= 0", name="ck_detail_debit_non_negative"),
        sa.CheckConstraint("credit_amount >= 0", name="ck_detail_credit_non_negative"),
    )
    op.create_index("ix_details_transaction", "transaction_details", ["transaction_id"])
    op.create_index("ix_details_account", "transaction_details", ["account_id"])

    op.create_table(
        "receipts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("receipt_number", sa.String(50), nullable=False),
        sa.Column("receipt_date", sa.Date(), nullable=False),
        _money("amount", nullable=False),
        sa.Column("payment_method", _payment_method(), nullable=False),
        sa.Column("reference_number", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id"), nullable=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("business_id", "receipt_number", name="uq_receipts_business_number"),
        sa.CheckConstraint("amount > 0", name="ck_receipts_amount_positive"),
    )
    op.create_index("ix_receipts_business_date", "receipts", ["business_id", "receipt_date"])
    op.create_index("ix_receipts_customer", "receipts", ["customer_id"])
    op.create_index("ix_receipts_supplier", "receipts", ["supplier_id"])
    op.create_index("ix_receipts_invoice", "receipts", ["invoice_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("table_name", sa.String(100), nullable=False),
        sa.Column("record_id", sa.String(255), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("changed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
    )
    op.create_index("ix_audit_table_record", "audit_logs", ["table_name", "record_id"])
    op.create_index("ix_audit_created_at", "audit_logs", ["created_at"])
    op.create_index("ix_audit_action", "audit_logs", ["action"])


def downgrade() -> None:
    for table in (
        "audit_logs",
        "receipts",
        "transaction_details",
        "transactions",
        "invoice_items",
        "invoices",
        "suppliers",
        "customers",
        "categories",
        "accounts",
        "users",
        "businesses",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name in _ENUM_NAMES:
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)
