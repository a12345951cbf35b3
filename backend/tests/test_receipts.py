"""Tests for receipts and their single-sided balance effects."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.core.exceptions import NotFoundError, ValidationError
from backend.app.models.accounting import (
    AuditLog,
    Category,
    Customer,
    Invoice,
    Receipt,
    Supplier,
    User,
)
from backend.app.models.enums import PaymentMethod
from backend.app.schemas.receipt import ReceiptCreate, ReceiptUpdate
from backend.app.services.receipts import (
    create_receipt,
    delete_receipt,
    list_receipts,
    receipt_summary,
    update_receipt,
)
from backend.tests.conftest import auth, balance_of


def _receipt(amount: str = "100", **links: object) -> ReceiptCreate:
    return ReceiptCreate(
        receipt_date=links.pop("receipt_date", date(2026, 5, 10)),
        amount=Decimal(amount),
        payment_method=links.pop("payment_method", PaymentMethod.CASH),
        description=links.pop("description", "Payment received"),
        **links,
    )


# ═══════════════════════════════════════════════════════════════════════════════
#  Service-layer tests
# ═══════════════════════════════════════════════════════════════════════════════


class TestCreateReceipt:
    def test_lowers_customer_balance(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        before = balance_of(db, customer)
        create_receipt(db, owner.business_id, owner.id, _receipt("50", customer_id=customer.id))
        assert balance_of(db, customer) == before - Decimal("50")

    def test_lowers_supplier_balance(
        self, db: Session, owner: User, supplier: Supplier
    ) -> None:
        create_receipt(db, owner.business_id, owner.id, _receipt("30", supplier_id=supplier.id))
        assert balance_of(db, supplier) == Decimal("-30")

    def test_pays_invoice_down(self, db: Session, owner: User, invoice: Invoice) -> None:
        create_receipt(db, owner.business_id, owner.id, _receipt("200", invoice_id=invoice.id))
        db.refresh(invoice)
        assert invoice.paid_amount == Decimal("200")
        assert invoice.balance_due == Decimal("300")

    def test_all_links_apply_together(
        self,
        db: Session,
        owner: User,
        customer: Customer,
        supplier: Supplier,
        invoice: Invoice,
    ) -> None:
        create_receipt(
            db,
            owner.business_id,
            owner.id,
            _receipt(
                "40",
                customer_id=customer.id,
                supplier_id=supplier.id,
                invoice_id=invoice.id,
            ),
        )
        db.refresh(invoice)
        assert balance_of(db, customer) == Decimal("-40")
        assert balance_of(db, supplier) == Decimal("-40")
        assert invoice.paid_amount == Decimal("40")
        assert invoice.balance_due == Decimal("460")

    def test_returns_display_fields(
        self,
        db: Session,
        owner: User,
        customer: Customer,
        category: Category,
        invoice: Invoice,
    ) -> None:
        result = create_receipt(
            db,
            owner.business_id,
            owner.id,
            _receipt(customer_id=customer.id, category_id=category.id, invoice_id=invoice.id),
        )
        assert result.receipt_number.startswith("RCP-")
        assert result.receipt_number.endswith("-000001")
        assert result.customer_name == "Acme Retail"
        assert result.category_name == "Sales"
        assert result.invoice_number == "INV-2026-000001"
        assert result.created_by_name == "Test Owner"

    def test_unknown_link_rejected_without_side_effects(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        with pytest.raises(NotFoundError, match="Invoice not found"):
            create_receipt(
                db,
                owner.business_id,
                owner.id,
                _receipt(customer_id=customer.id, invoice_id=999_999),
            )
        assert balance_of(db, customer) == Decimal("0")
        assert db.query(Receipt).count() == 0

    def test_audit_logged(self, db: Session, owner: User) -> None:
        result = create_receipt(db, owner.business_id, owner.id, _receipt())
        log = db.query(AuditLog).filter(AuditLog.table_name == "receipts").one()
        assert log.action == "CREATE"
        assert log.record_id == str(result.id)


class TestReceiptReversal:
    def test_delete_restores_every_balance(
        self,
        db: Session,
        owner: User,
        customer: Customer,
        supplier: Supplier,
        invoice: Invoice,
    ) -> None:
        receipt = create_receipt(
            db,
            owner.business_id,
            owner.id,
            _receipt(
                "123.45",
                customer_id=customer.id,
                supplier_id=supplier.id,
                invoice_id=invoice.id,
            ),
        )
        delete_receipt(db, owner.business_id, owner.id, receipt.id)

        db.refresh(invoice)
        assert balance_of(db, customer) == Decimal("0")
        assert balance_of(db, supplier) == Decimal("0")
        assert invoice.paid_amount == Decimal("0")
        assert invoice.balance_due == Decimal("500")
        assert db.query(Receipt).count() == 0

    def test_delete_other_tenant_not_found(
        self, db: Session, owner: User, outsider: User, customer: Customer
    ) -> None:
        receipt = create_receipt(
            db, owner.business_id, owner.id, _receipt(customer_id=customer.id)
        )
        with pytest.raises(NotFoundError, match="Receipt not found"):
            delete_receipt(db, outsider.business_id, outsider.id, receipt.id)
        assert balance_of(db, customer) == Decimal("-100")


class TestUpdateReceipt:
    def test_amount_change_applies_only_the_difference(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        receipt = create_receipt(
            db, owner.business_id, owner.id, _receipt("100", customer_id=customer.id)
        )
        assert balance_of(db, customer) == Decimal("-100")

        update_receipt(
            db, owner.business_id, owner.id, receipt.id, ReceiptUpdate(amount=Decimal("150"))
        )
        assert balance_of(db, customer) == Decimal("-150")

        update_receipt(
            db, owner.business_id, owner.id, receipt.id, ReceiptUpdate(amount=Decimal("90"))
        )
        assert balance_of(db, customer) == Decimal("-90")

    def test_amount_change_moves_invoice(
        self, db: Session, owner: User, invoice: Invoice
    ) -> None:
        receipt = create_receipt(
            db, owner.business_id, owner.id, _receipt("100", invoice_id=invoice.id)
        )
        update_receipt(
            db, owner.business_id, owner.id, receipt.id, ReceiptUpdate(amount=Decimal("60"))
        )
        db.refresh(invoice)
        assert invoice.paid_amount == Decimal("60")
        assert invoice.balance_due == Decimal("440")

    def test_relinking_applies_delta_to_previous_customer(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        other = Customer(business_id=owner.business_id, name="Second Customer")
        db.add(other)
        db.commit()

        receipt = create_receipt(
            db, owner.business_id, owner.id, _receipt("100", customer_id=customer.id)
        )
        result = update_receipt(
            db,
            owner.business_id,
            owner.id,
            receipt.id,
            ReceiptUpdate(amount=Decimal("150"), customer_id=other.id),
        )

        assert result.customer_id == other.id
        assert balance_of(db, customer) == Decimal("-150")
        assert balance_of(db, other) == Decimal("0")

    def test_field_only_update_leaves_balances(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        receipt = create_receipt(
            db, owner.business_id, owner.id, _receipt("100", customer_id=customer.id)
        )
        result = update_receipt(
            db,
            owner.business_id,
            owner.id,
            receipt.id,
            ReceiptUpdate(
                description="Cheque #42",
                payment_method=PaymentMethod.CHECK,
                receipt_date=date(2026, 5, 12),
            ),
        )
        assert result.description == "Cheque #42"
        assert result.payment_method == PaymentMethod.CHECK
        assert balance_of(db, customer) == Decimal("-100")

    def test_same_amount_is_a_no_op_for_balances(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        receipt = create_receipt(
            db, owner.business_id, owner.id, _receipt("100", customer_id=customer.id)
        )
        update_receipt(
            db, owner.business_id, owner.id, receipt.id, ReceiptUpdate(amount=Decimal("100"))
        )
        assert balance_of(db, customer) == Decimal("-100")

    def test_empty_update_rejected(self, db: Session, owner: User) -> None:
        receipt = create_receipt(db, owner.business_id, owner.id, _receipt())
        with pytest.raises(ValidationError, match="No valid fields to update"):
            update_receipt(db, owner.business_id, owner.id, receipt.id, ReceiptUpdate())

    def test_null_amount_rejected(self, db: Session, owner: User) -> None:
        receipt = create_receipt(db, owner.business_id, owner.id, _receipt())
        with pytest.raises(ValidationError, match="amount cannot be null"):
            update_receipt(
                db, owner.business_id, owner.id, receipt.id, ReceiptUpdate(amount=None)
            )


class TestListAndSummary:
    def test_list_totals_and_filters(
        self, db: Session, owner: User, customer: Customer, supplier: Supplier
    ) -> None:
        create_receipt(db, owner.business_id, owner.id, _receipt("100", customer_id=customer.id))
        create_receipt(
            db,
            owner.business_id,
            owner.id,
            _receipt("50", supplier_id=supplier.id, description="Refund from mill"),
        )

        items, total, summary = list_receipts(db, owner.business_id, 1, 20)
        assert total == 2
        assert summary["total_amount"] == Decimal("150")
        assert summary["total_receipts"] == 2
        assert summary["average_amount"] == Decimal("75")

        items, total, _ = list_receipts(db, owner.business_id, 1, 20, supplier_id=supplier.id)
        assert [r.supplier_name for r in items] == ["Paper Mill"]

        items, total, _ = list_receipts(db, owner.business_id, 1, 20, search="mill")
        assert total == 1

    def test_summary_by_payment_method(
        self, db: Session, owner: User, category: Category
    ) -> None:
        create_receipt(db, owner.business_id, owner.id, _receipt("10", category_id=category.id))
        create_receipt(db, owner.business_id, owner.id, _receipt("20", category_id=category.id))
        create_receipt(
            db,
            owner.business_id,
            owner.id,
            _receipt("70", payment_method=PaymentMethod.BANK_TRANSFER),
        )

        summary = receipt_summary(db, owner.business_id)
        by_method = {
            row["payment_method"]: (row["count"], row["total_amount"])
            for row in summary["summary_by_payment_method"]
        }
        assert by_method == {
            PaymentMethod.CASH: (2, Decimal("30")),
            PaymentMethod.BANK_TRANSFER: (1, Decimal("70")),
        }
        assert summary["monthly_trends"][0]["month"] == "2026-05"
        assert summary["top_categories"][0]["total_amount"] == Decimal("30")


# ═══════════════════════════════════════════════════════════════════════════════
#  API tests
# ═══════════════════════════════════════════════════════════════════════════════


class TestReceiptsAPI:
    def test_create_update_delete_round_trip(
        self, client: TestClient, owner_token: str, customer: Customer
    ) -> None:
        created = client.post(
            "/api/receipts",
            json={
                "receiptDate": "2026-05-10",
                "amount": 100,
                "paymentMethod": "cash",
                "customerId": customer.id,
            },
            headers=auth(owner_token),
        )
        assert created.status_code == 201
        receipt = created.json()["receipt"]
        assert receipt["amount"] == 100.0
        assert receipt["customer_name"] == "Acme Retail"

        updated = client.put(
            f"/api/receipts/{receipt['id']}",
            json={"amount": 150},
            headers=auth(owner_token),
        )
        assert updated.status_code == 200
        assert updated.json()["message"] == "Receipt updated successfully"

        balance = client.get(f"/api/customers/{customer.id}", headers=auth(owner_token))
        assert balance.json()["current_balance"] == -150.0

        deleted = client.delete(f"/api/receipts/{receipt['id']}", headers=auth(owner_token))
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Receipt deleted successfully"}

        balance = client.get(f"/api/customers/{customer.id}", headers=auth(owner_token))
        assert balance.json()["current_balance"] == 0.0

    def test_non_positive_amount_is_400(self, client: TestClient, owner_token: str) -> None:
        resp = client.post(
            "/api/receipts",
            json={"receiptDate": "2026-05-10", "amount": 0, "paymentMethod": "cash"},
            headers=auth(owner_token),
        )
        assert resp.status_code == 400
        assert "errors" in resp.json()

    def test_reference_number_longer_than_column_is_400(
        self, client: TestClient, db: Session, owner_token: str
    ) -> None:
        resp = client.post(
            "/api/receipts",
            json={
                "receiptDate": "2026-05-10",
                "amount": 10,
                "paymentMethod": "cash",
                "referenceNumber": "R" * 101,
            },
            headers=auth(owner_token),
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["loc"][-1] == "referenceNumber"
        assert db.query(Receipt).count() == 0

    def test_missing_receipt_is_404(self, client: TestClient, owner_token: str) -> None:
        resp = client.put(
            "/api/receipts/424242", json={"amount": 5}, headers=auth(owner_token)
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Receipt not found"}

    def test_list_scoped_to_tenant(
        self,
        client: TestClient,
        db: Session,
        owner: User,
        owner_token: str,
        outsider_token: str,
    ) -> None:
        create_receipt(db, owner.business_id, owner.id, _receipt())
        mine = client.get("/api/receipts", headers=auth(owner_token)).json()
        theirs = client.get("/api/receipts", headers=auth(outsider_token)).json()
        assert mine["pagination"]["total"] == 1
        assert mine["summary"]["total_amount"] == 100.0
        assert theirs["pagination"]["total"] == 0
        assert theirs["data"] == []

    def test_dashboard_summary(
        self, client: TestClient, db: Session, owner: User, owner_token: str
    ) -> None:
        create_receipt(db, owner.business_id, owner.id, _receipt("80"))
        resp = client.get("/api/receipts/dashboard/summary", headers=auth(owner_token))
        assert resp.status_code == 200
        body = resp.json()
        assert body["summary_by_payment_method"] == [
            {"payment_method": "cash", "count": 1, "total_amount": 80.0}
        ]
