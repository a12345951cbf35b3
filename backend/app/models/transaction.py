from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.database import Base
from backend.app.models.enums import (
    PaymentMethod,
    TransactionStatus,
    TransactionType,
    enum_values,
)


class Transaction(Base):
    """Transaction header.

    Double-entry integrity (sum(debits) == sum(credits)) spans child rows, so
    it is enforced by the ledger service before anything is written, inside
    the same DB transaction that applies the balance deltas.
    """

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    business_id: Mapped[int] = mapped_column(
        ForeignKey("businesses.id"), nullable=False
    )
    transaction_number: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, values_callable=enum_values), nullable=False
    )
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), nullable=True
    )
    customer_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id"), nullable=True
    )
    supplier_id: Mapped[int | None] = mapped_column(
        ForeignKey("suppliers.id"), nullable=True
    )
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus, values_callable=enum_values),
        nullable=False,
        default=TransactionStatus.POSTED,
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(PaymentMethod, values_callable=enum_values), nullable=True
    )
    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    customer: Mapped["Customer | None"] = relationship()  # noqa: F821
    supplier: Mapped["Supplier | None"] = relationship()  # noqa: F821
    category: Mapped["Category | None"] = relationship()  # noqa: F821
    created_by_user: Mapped["User | None"] = relationship()  # noqa: F821
    details: Mapped[list[TransactionDetail]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionDetail.line_number",
    )

    __table_args__ = (
        UniqueConstraint(
            "business_id", "transaction_number", name="uq_transactions_business_number"
        ),
        CheckConstraint("total_amount > 0", name="ck_transactions_total_positive"),
        Index("ix_transactions_business_date", "business_id", "transaction_date"),
        Index("ix_transactions_customer", "customer_id"),
        Index("ix_transactions_supplier", "supplier_id"),
    )

    @property
    def customer_name(self) -> str | None:
        return self.customer.name if self.customer else None

    @property
    def supplier_name(self) -> str | None:
        return self.supplier.name if self.supplier else None

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category else None

    @property
    def created_by_name(self) -> str | None:
        return self.created_by_user.full_name if self.created_by_user else None


class TransactionDetail(Base):
    """A single debit/credit line within a transaction."""

    __tablename__ = "transaction_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False
    )
    debit_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    credit_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    transaction: Mapped[Transaction] = relationship(back_populates="details")
    account: Mapped["Account"] = relationship()  # noqa: F821

    __table_args__ = (
        CheckConstraint("debit_amount >= 0", name="ck_detail_debit_non_negative"),
        CheckConstraint("credit_amount >= 0", name="ck_detail_credit_non_negative"),
        Index("ix_details_transaction", "transaction_id"),
        Index("ix_details_account", "account_id"),
    )

    @property
    def account_code(self) -> str | None:
        return self.account.code if self.account else None

    @property
    def account_name(self) -> str | None:
        return self.account.name if self.account else None
