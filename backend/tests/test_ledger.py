"""Tests for the ledger unit of work and its balance rules."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from backend.app.core.exceptions import NotFoundError, ValidationError
from backend.app.models.accounting import Account, AuditLog, Category, Customer, Invoice, User
from backend.app.models.enums import TransactionType
from backend.app.services.ledger import (
    IMBALANCE_MESSAGE,
    CounterpartyRole,
    LedgerMutation,
    apply_receipt_effect,
    check_double_entry,
    counterparty_multiplier,
)
from backend.tests.conftest import balance_of


# ═══════════════════════════════════════════════════════════════════════════════
#  Pure rules
# ═══════════════════════════════════════════════════════════════════════════════


class TestDoubleEntry:
    def test_balanced_lines_return_totals(self) -> None:
        debits, credits = check_double_entry(
            [(Decimal("60"), Decimal("0")), (Decimal("40"), Decimal("0")), (Decimal("0"), Decimal("100"))]
        )
        assert debits == Decimal("100")
        assert credits == Decimal("100")

    def test_difference_within_a_cent_is_accepted(self) -> None:
        check_double_entry([(Decimal("100.00"), Decimal("0")), (Decimal("0"), Decimal("99.99"))])

    def test_imbalance_raises(self) -> None:
        with pytest.raises(ValidationError, match=IMBALANCE_MESSAGE):
            check_double_entry([(Decimal("100"), Decimal("0")), (Decimal("0"), Decimal("99.98"))])


class TestCounterpartyMultiplier:
    @pytest.mark.parametrize(
        ("transaction_type", "role", "expected"),
        [
            (TransactionType.SALE, CounterpartyRole.CUSTOMER, 1),
            (TransactionType.PAYMENT, CounterpartyRole.CUSTOMER, -1),
            (TransactionType.PURCHASE, CounterpartyRole.SUPPLIER, 1),
            (TransactionType.PAYMENT, CounterpartyRole.SUPPLIER, -1),
            (TransactionType.INCOME, CounterpartyRole.CUSTOMER, 0),
            (TransactionType.RECEIPT, CounterpartyRole.CUSTOMER, 0),
            (TransactionType.SALE, CounterpartyRole.SUPPLIER, 0),
            (TransactionType.PURCHASE, CounterpartyRole.CUSTOMER, 0),
            (TransactionType.JOURNAL, CounterpartyRole.SUPPLIER, 0),
        ],
    )
    def test_effect_table(
        self, transaction_type: TransactionType, role: CounterpartyRole, expected: int
    ) -> None:
        assert counterparty_multiplier(transaction_type, role) == expected

    def test_accepts_raw_string(self) -> None:
        assert counterparty_multiplier("sale", CounterpartyRole.CUSTOMER) == 1


# ═══════════════════════════════════════════════════════════════════════════════
#  LedgerMutation
# ═══════════════════════════════════════════════════════════════════════════════


class TestPendingChanges:
    def test_offsetting_lines_cancel_out(self, db: Session, owner: User) -> None:
        mutation = LedgerMutation(db, owner.business_id, owner.id)
        mutation.post_line(1, Decimal("100"), Decimal("0"))
        mutation.post_line(1, Decimal("0"), Decimal("100"))
        assert mutation.pending_changes() == {}

    def test_deltas_are_grouped_per_row(self, db: Session, owner: User) -> None:
        mutation = LedgerMutation(db, owner.business_id, owner.id)
        mutation.post_line(1, Decimal("0"), Decimal("30"))
        mutation.post_line(1, Decimal("0"), Decimal("20"))
        mutation.adjust_customer(7, Decimal("-5"))
        mutation.apply_invoice_payment(3, Decimal("40"))

        assert mutation.pending_changes() == {
            ("accounts", 1): {"current_balance": Decimal("50")},
            ("customers", 7): {"current_balance": Decimal("-5")},
            ("invoices", 3): {"paid_amount": Decimal("40"), "balance_due": Decimal("-40")},
        }

    def test_receipt_effect_touches_every_link(self, db: Session, owner: User) -> None:
        mutation = LedgerMutation(db, owner.business_id, owner.id)
        apply_receipt_effect(
            mutation, customer_id=1, supplier_id=2, invoice_id=3, amount=Decimal("25")
        )
        assert mutation.pending_changes() == {
            ("customers", 1): {"current_balance": Decimal("-25")},
            ("suppliers", 2): {"current_balance": Decimal("-25")},
            ("invoices", 3): {"paid_amount": Decimal("25"), "balance_due": Decimal("-25")},
        }


class TestCommit:
    def test_increments_accumulate(
        self, db: Session, owner: User, accounts: dict[str, Account]
    ) -> None:
        cash = accounts["1000"]
        for _ in range(3):
            mutation = LedgerMutation(db, owner.business_id, owner.id)
            mutation.post_line(cash.id, Decimal("0"), Decimal("10.25"))
            mutation.commit()

        assert balance_of(db, cash) == Decimal("30.75")

    def test_debit_lowers_balance(
        self, db: Session, owner: User, accounts: dict[str, Account]
    ) -> None:
        rent = accounts["5100"]
        mutation = LedgerMutation(db, owner.business_id, owner.id)
        mutation.post_line(rent.id, Decimal("80"), Decimal("0"))
        mutation.commit()

        assert balance_of(db, rent) == Decimal("-80")

    def test_audit_rows_written(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        mutation = LedgerMutation(db, owner.business_id, owner.id)
        mutation.adjust_customer(customer.id, Decimal("15"))
        mutation.audit("ADJUST", customer, {"delta": Decimal("15")})
        mutation.commit()

        log = db.query(AuditLog).filter(AuditLog.action == "ADJUST").one()
        assert log.table_name == "customers"
        assert log.record_id == str(customer.id)
        assert log.changed_by == owner.id
        assert log.new_values == {"delta": 15.0}

    def test_missing_target_rolls_back_everything(
        self, db: Session, owner: User, accounts: dict[str, Account]
    ) -> None:
        cash = accounts["1000"]
        mutation = LedgerMutation(db, owner.business_id, owner.id)
        mutation.add(Category(business_id=owner.business_id, name="Orphaned"))
        mutation.post_line(cash.id, Decimal("0"), Decimal("100"))
        mutation.adjust_customer(999_999, Decimal("100"))

        with pytest.raises(NotFoundError, match="Customer not found"):
            mutation.commit()

        assert balance_of(db, cash) == Decimal("0")
        assert db.query(Category).filter(Category.name == "Orphaned").count() == 0

    def test_other_tenant_row_is_not_found(
        self, db: Session, owner: User, outsider: User
    ) -> None:
        foreign = Customer(business_id=outsider.business_id, name="Not yours")
        db.add(foreign)
        db.commit()

        mutation = LedgerMutation(db, owner.business_id, owner.id)
        mutation.adjust_customer(foreign.id, Decimal("10"))
        with pytest.raises(NotFoundError):
            mutation.commit()

        assert balance_of(db, foreign) == Decimal("0")

    def test_invoice_payment_moves_both_columns(
        self, db: Session, owner: User, invoice: Invoice
    ) -> None:
        mutation = LedgerMutation(db, owner.business_id, owner.id)
        mutation.apply_invoice_payment(invoice.id, Decimal("120"))
        mutation.commit()

        db.refresh(invoice)
        assert invoice.paid_amount == Decimal("120")
        assert invoice.balance_due == Decimal("380")
