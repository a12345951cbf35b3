"""Ledger balance propagation.

Every transaction or receipt mutation boils down to signed deltas on running
balances: ``accounts.current_balance``, ``customers.current_balance``,
``suppliers.current_balance`` and the ``paid_amount`` / ``balance_due`` pair on
``invoices``. A :class:`LedgerMutation` collects those deltas together with the
rows to insert or delete, then writes all of it in a single DB transaction.
Balances are moved with ``SET col = col + :delta`` so concurrent writers
accumulate instead of overwriting each other.
"""

from __future__ import annotations

import enum
import logging
from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from backend.app.core.database import Base
from backend.app.core.exceptions import NotFoundError, ValidationError
from backend.app.models.accounting import Account, Customer, Invoice, Supplier
from backend.app.models.enums import TransactionType
from backend.app.services.audit import log_action

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
TOLERANCE = Decimal("0.01")

IMBALANCE_MESSAGE = "Total debits must equal total credits"


class CounterpartyRole(str, enum.Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


# Sign applied to a transaction's total_amount on the linked counterparty.
# Pairs that are absent leave the counterparty untouched even when linked.
COUNTERPARTY_EFFECTS: dict[tuple[TransactionType, CounterpartyRole], int] = {
    (TransactionType.SALE, CounterpartyRole.CUSTOMER): 1,
    (TransactionType.PAYMENT, CounterpartyRole.CUSTOMER): -1,
    (TransactionType.PURCHASE, CounterpartyRole.SUPPLIER): 1,
    (TransactionType.PAYMENT, CounterpartyRole.SUPPLIER): -1,
}

_COUNTERPARTY_MODELS: dict[CounterpartyRole, type[Base]] = {
    CounterpartyRole.CUSTOMER: Customer,
    CounterpartyRole.SUPPLIER: Supplier,
}


def counterparty_multiplier(
    transaction_type: TransactionType | str, role: CounterpartyRole
) -> int:
    return COUNTERPARTY_EFFECTS.get((TransactionType(transaction_type), role), 0)


def amounts_match(left: Decimal, right: Decimal) -> bool:
    return abs(left - right) <= TOLERANCE


def check_double_entry(lines: Iterable[tuple[Decimal, Decimal]]) -> tuple[Decimal, Decimal]:
    """Sum ``(debit, credit)`` pairs and reject an unbalanced set.

    Returns ``(total_debits, total_credits)``.
    """
    total_debits = ZERO
    total_credits = ZERO
    for debit, credit in lines:
        total_debits += debit
        total_credits += credit
    if not amounts_match(total_debits, total_credits):
        raise ValidationError(IMBALANCE_MESSAGE)
    return total_debits, total_credits


class LedgerMutation:
    """Unit of work for one logical ledger change.

    Nothing touches the database until :meth:`commit`; a failure anywhere in
    the commit rolls back the header rows, the detail rows and every balance
    delta together.
    """

    def __init__(self, db: Session, business_id: int, user_id: int | None = None) -> None:
        self.db = db
        self.business_id = business_id
        self.user_id = user_id
        self._new_rows: list[Base] = []
        self._doomed_rows: list[Base] = []
        self._deltas: dict[tuple[type[Base], int], dict[str, Decimal]] = defaultdict(
            lambda: defaultdict(Decimal)
        )
        self._audit: list[tuple[str, Base, dict[str, Any] | None]] = []

    # ── collecting ────────────────────────────────────────────────────────

    def add(self, row: Base) -> None:
        self._new_rows.append(row)

    def remove(self, row: Base) -> None:
        self._doomed_rows.append(row)

    def post_line(self, account_id: int, debit: Decimal, credit: Decimal) -> None:
        """Credits raise an account balance, debits lower it."""
        self._shift(Account, account_id, "current_balance", credit - debit)

    def adjust_customer(self, customer_id: int, delta: Decimal) -> None:
        self._shift(Customer, customer_id, "current_balance", delta)

    def adjust_supplier(self, supplier_id: int, delta: Decimal) -> None:
        self._shift(Supplier, supplier_id, "current_balance", delta)

    def adjust_counterparty(
        self, role: CounterpartyRole, counterparty_id: int, delta: Decimal
    ) -> None:
        self._shift(_COUNTERPARTY_MODELS[role], counterparty_id, "current_balance", delta)

    def apply_invoice_payment(self, invoice_id: int, amount: Decimal) -> None:
        self._shift(Invoice, invoice_id, "paid_amount", amount)
        self._shift(Invoice, invoice_id, "balance_due", -amount)

    def audit(self, action: str, row: Base, changes: dict[str, Any] | None = None) -> None:
        self._audit.append((action, row, changes))

    def pending_changes(self) -> dict[tuple[str, int], dict[str, Decimal]]:
        """Net deltas keyed by ``(table, id)``; zero entries are dropped."""
        pending: dict[tuple[str, int], dict[str, Decimal]] = {}
        for (model, pk), columns in self._deltas.items():
            moved = {col: delta for col, delta in columns.items() if delta != ZERO}
            if moved:
                pending[(model.__tablename__, pk)] = moved
        return pending

    def _shift(self, model: type[Base], pk: int, column: str, delta: Decimal) -> None:
        self._deltas[(model, pk)][column] += Decimal(delta)

    # ── writing ───────────────────────────────────────────────────────────

    def commit(self) -> None:
        try:
            for row in self._new_rows:
                self.db.add(row)
            self.db.flush()

            for (model, pk), columns in self._deltas.items():
                self._increment(model, pk, columns)

            for action, row, changes in self._audit:
                log_action(
                    self.db,
                    business_id=self.business_id,
                    user_id=self.user_id,
                    action=action,
                    resource_type=row.__tablename__,
                    resource_id=str(row.id),
                    changes=changes,
                )

            for row in self._doomed_rows:
                self.db.delete(row)

            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning(
                "Rolled back ledger mutation for business %s", self.business_id
            )
            raise

        logger.debug(
            "Committed ledger mutation for business %s: %d balance row(s)",
            self.business_id,
            len(self.pending_changes()),
        )

    def _increment(self, model: type[Base], pk: int, columns: dict[str, Decimal]) -> None:
        values = {
            col: getattr(model, col) + delta
            for col, delta in columns.items()
            if delta != ZERO
        }
        if not values:
            return
        result = self.db.execute(
            update(model)
            .where(model.id == pk, model.business_id == self.business_id)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError(model.__name__)


def apply_receipt_effect(
    mutation: LedgerMutation,
    *,
    customer_id: int | None,
    supplier_id: int | None,
    invoice_id: int | None,
    amount: Decimal,
) -> None:
    """Queue the balance effect of receiving ``amount``.

    A receipt lowers what the customer owes and what is owed to the supplier,
    and pays the invoice down. All three links apply independently. Pass a
    negative amount to reverse.
    """
    if customer_id:
        mutation.adjust_customer(customer_id, -amount)
    if supplier_id:
        mutation.adjust_supplier(supplier_id, -amount)
    if invoice_id:
        mutation.apply_invoice_payment(invoice_id, amount)
