"""Tests for invoices: creation, status changes and guarded deletes."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.core.exceptions import ConflictError, NotFoundError, StateError
from backend.app.models.accounting import AuditLog, Customer, Invoice, InvoiceItem, User
from backend.app.models.enums import InvoiceStatus, PaymentMethod
from backend.app.schemas.invoice import InvoiceCreate, InvoiceItemCreate
from backend.app.schemas.receipt import ReceiptCreate
from backend.app.services.invoices import (
    create_invoice,
    delete_invoice,
    list_invoices,
    update_invoice_status,
)
from backend.app.services.receipts import create_receipt
from backend.tests.conftest import auth


def _invoice_payload(customer_id: int) -> InvoiceCreate:
    return InvoiceCreate(
        customer_id=customer_id,
        invoice_date=date(2026, 6, 1),
        due_date=date(2026, 7, 1),
        subtotal=Decimal("300"),
        tax_amount=Decimal("45"),
        total_amount=Decimal("345"),
        items=[
            InvoiceItemCreate(description="Design", quantity=Decimal("2"), unit_price=Decimal("100")),
            InvoiceItemCreate(
                description="Hosting",
                unit_price=Decimal("100"),
                line_total=Decimal("100"),
                tax_rate=Decimal("15"),
            ),
        ],
    )


class TestCreateInvoice:
    def test_starts_as_unpaid_draft(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        invoice = create_invoice(db, owner.business_id, owner.id, _invoice_payload(customer.id))

        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.paid_amount == Decimal("0")
        assert invoice.balance_due == Decimal("345")
        assert invoice.customer_name == "Acme Retail"

    def test_items_numbered_and_totalled(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        invoice = create_invoice(db, owner.business_id, owner.id, _invoice_payload(customer.id))

        assert [i.line_number for i in invoice.items] == [1, 2]
        assert invoice.items[0].line_total == Decimal("200")
        assert invoice.items[1].tax_rate == Decimal("15")

    def test_customer_must_belong_to_business(
        self, db: Session, owner: User, outsider: User, customer: Customer
    ) -> None:
        with pytest.raises(NotFoundError, match="Customer not found"):
            create_invoice(
                db, outsider.business_id, outsider.id, _invoice_payload(customer.id)
            )
        assert db.query(Invoice).count() == 0


class TestInvoiceLifecycle:
    def test_status_change_is_audited(
        self, db: Session, owner: User, invoice: Invoice
    ) -> None:
        result = update_invoice_status(
            db, owner.business_id, owner.id, invoice.id, InvoiceStatus.OVERDUE
        )
        assert result.status == InvoiceStatus.OVERDUE

        log = db.query(AuditLog).filter(AuditLog.action == "STATUS_CHANGE").one()
        assert log.new_values == {"from": "sent", "to": "overdue"}

    def test_only_drafts_can_be_deleted(
        self, db: Session, owner: User, invoice: Invoice
    ) -> None:
        with pytest.raises(StateError, match="Only draft invoices can be deleted"):
            delete_invoice(db, owner.business_id, owner.id, invoice.id)

    def test_receipts_block_delete(
        self, db: Session, owner: User, invoice: Invoice
    ) -> None:
        invoice.status = InvoiceStatus.DRAFT
        db.commit()
        create_receipt(
            db,
            owner.business_id,
            owner.id,
            ReceiptCreate(
                receipt_date=date(2026, 6, 5),
                amount=Decimal("100"),
                payment_method=PaymentMethod.CASH,
                invoice_id=invoice.id,
            ),
        )
        with pytest.raises(ConflictError, match="existing receipts"):
            delete_invoice(db, owner.business_id, owner.id, invoice.id)

    def test_draft_delete_cascades_items(
        self, db: Session, owner: User, customer: Customer
    ) -> None:
        invoice = create_invoice(db, owner.business_id, owner.id, _invoice_payload(customer.id))
        delete_invoice(db, owner.business_id, owner.id, invoice.id)

        assert db.query(Invoice).count() == 0
        assert db.query(InvoiceItem).count() == 0

    def test_list_filters(self, db: Session, owner: User, customer: Customer, invoice: Invoice) -> None:
        create_invoice(db, owner.business_id, owner.id, _invoice_payload(customer.id))

        items, total = list_invoices(db, owner.business_id, 1, 20)
        assert total == 2
        assert items[0].invoice_date == date(2026, 6, 1)

        items, total = list_invoices(db, owner.business_id, 1, 20, status=InvoiceStatus.SENT)
        assert [i.id for i in items] == [invoice.id]


class TestInvoicesAPI:
    def test_create_and_fetch(
        self, client: TestClient, owner_token: str, customer: Customer
    ) -> None:
        resp = client.post(
            "/api/invoices",
            json={
                "customerId": customer.id,
                "invoiceDate": "2026-06-01",
                "subtotal": 120,
                "totalAmount": 120,
                "items": [{"description": "Audit", "unitPrice": 120}],
            },
            headers=auth(owner_token),
        )
        assert resp.status_code == 201
        created = resp.json()["invoice"]
        assert created["balance_due"] == 120.0
        assert created["items"][0]["line_total"] == 120.0

        fetched = client.get(f"/api/invoices/{created['id']}", headers=auth(owner_token))
        assert fetched.status_code == 200
        assert fetched.json()["customer_name"] == "Acme Retail"

    def test_status_endpoint(
        self, client: TestClient, owner_token: str, invoice: Invoice
    ) -> None:
        resp = client.put(
            f"/api/invoices/{invoice.id}/status",
            json={"status": "paid"},
            headers=auth(owner_token),
        )
        assert resp.status_code == 200
        assert resp.json()["invoice"]["status"] == "paid"

    def test_invalid_status_is_400(
        self, client: TestClient, owner_token: str, invoice: Invoice
    ) -> None:
        resp = client.put(
            f"/api/invoices/{invoice.id}/status",
            json={"status": "archived"},
            headers=auth(owner_token),
        )
        assert resp.status_code == 400
        assert "errors" in resp.json()

    def test_list_by_customer(
        self, client: TestClient, owner_token: str, customer: Customer, invoice: Invoice
    ) -> None:
        resp = client.get(
            "/api/invoices", params={"customerId": customer.id}, headers=auth(owner_token)
        )
        assert resp.status_code == 200
        assert resp.json()["pagination"]["total"] == 1

    def test_other_tenant_gets_404(
        self, client: TestClient, outsider_token: str, invoice: Invoice
    ) -> None:
        resp = client.delete(f"/api/invoices/{invoice.id}", headers=auth(outsider_token))
        assert resp.status_code == 404
        assert resp.json() == {"error": "Invoice not found"}
