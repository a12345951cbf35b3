"""Tests for admin-only user management within a business."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.core.security import create_access_token
from backend.app.models.accounting import AuditLog, RoleEnum, User
from backend.app.models.enums import PaymentMethod
from backend.app.schemas.auth import UserCreate
from backend.app.schemas.receipt import ReceiptCreate
from backend.app.services.receipts import create_receipt
from backend.app.services.users import create_user
from backend.tests.conftest import auth

NEW_USER = {
    "email": "Clerk@Example.com",
    "password": "clerk-pass",
    "firstName": "Casey",
    "lastName": "Clerk",
}


def _member(db: Session, owner: User, email: str, role: RoleEnum = RoleEnum.USER) -> User:
    return create_user(
        db,
        owner.business_id,
        owner.id,
        UserCreate(
            email=email, password="member-pass", first_name="Team", last_name="Member", role=role
        ),
    )


def _token(user: User) -> str:
    return create_access_token(subject=str(user.id), business_id=user.business_id)


class TestUserAdmin:
    def test_create_then_log_in(
        self, client: TestClient, db: Session, owner: User, owner_token: str
    ) -> None:
        resp = client.post("/api/users", json=NEW_USER, headers=auth(owner_token))
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "User created successfully"
        assert body["user"]["email"] == "clerk@example.com"
        assert body["user"]["role"] == "user"
        assert body["user"]["business_id"] == owner.business_id

        login = client.post(
            "/api/auth/login", json={"email": "clerk@example.com", "password": "clerk-pass"}
        )
        assert login.status_code == 200
        assert db.query(AuditLog).filter(AuditLog.action == "USER_CREATED").count() == 1

    def test_duplicate_email_is_400(
        self, client: TestClient, owner_token: str, outsider: User
    ) -> None:
        resp = client.post(
            "/api/users",
            json={**NEW_USER, "email": "outsider@example.com"},
            headers=auth(owner_token),
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "User with this email already exists"}

    def test_list_and_get_are_tenant_scoped(
        self,
        client: TestClient,
        db: Session,
        owner: User,
        owner_token: str,
        outsider_token: str,
    ) -> None:
        member = _member(db, owner, "member@example.com")

        listed = client.get("/api/users", headers=auth(owner_token)).json()
        assert {u["email"] for u in listed} == {"owner@example.com", "member@example.com"}

        theirs = client.get("/api/users", headers=auth(outsider_token)).json()
        assert [u["email"] for u in theirs] == ["outsider@example.com"]

        resp = client.get(f"/api/users/{member.id}", headers=auth(outsider_token))
        assert resp.status_code == 404
        assert resp.json() == {"error": "User not found"}

    def test_update_role_and_status(
        self, client: TestClient, db: Session, owner: User, owner_token: str
    ) -> None:
        member = _member(db, owner, "member@example.com")
        resp = client.put(
            f"/api/users/{member.id}",
            json={"role": "accountant", "isActive": False},
            headers=auth(owner_token),
        )
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "accountant"
        assert resp.json()["user"]["is_active"] is False

    def test_empty_update_is_400(
        self, client: TestClient, db: Session, owner: User, owner_token: str
    ) -> None:
        member = _member(db, owner, "member@example.com")
        resp = client.put(f"/api/users/{member.id}", json={}, headers=auth(owner_token))
        assert resp.status_code == 400
        assert resp.json() == {"error": "No valid fields to update"}

    def test_delete_unused_user(
        self, client: TestClient, db: Session, owner: User, owner_token: str
    ) -> None:
        member = _member(db, owner, "member@example.com")
        resp = client.delete(f"/api/users/{member.id}", headers=auth(owner_token))
        assert resp.status_code == 200
        assert resp.json() == {"message": "User deleted successfully"}
        assert db.get(User, member.id) is None

    def test_delete_user_with_activity_is_400(
        self, client: TestClient, db: Session, owner: User, owner_token: str
    ) -> None:
        member = _member(db, owner, "member@example.com")
        create_receipt(
            db,
            owner.business_id,
            member.id,
            ReceiptCreate(
                receipt_date=date(2026, 5, 10),
                amount=Decimal("5"),
                payment_method=PaymentMethod.CASH,
            ),
        )
        resp = client.delete(f"/api/users/{member.id}", headers=auth(owner_token))
        assert resp.status_code == 400
        assert "Consider deactivating instead" in resp.json()["error"]


class TestAdminGuards:
    def test_non_admin_is_403(self, client: TestClient, db: Session, owner: User) -> None:
        member = _member(db, owner, "member@example.com")
        resp = client.get("/api/users", headers=auth(_token(member)))
        assert resp.status_code == 403
        assert resp.json() == {"error": "Admin access required"}

    def test_last_admin_cannot_be_demoted(
        self, client: TestClient, owner: User, owner_token: str
    ) -> None:
        resp = client.put(
            f"/api/users/{owner.id}", json={"role": "user"}, headers=auth(owner_token)
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cannot remove the last admin user"}

    def test_last_admin_cannot_be_deleted(
        self, client: TestClient, owner: User, owner_token: str
    ) -> None:
        resp = client.delete(f"/api/users/{owner.id}", headers=auth(owner_token))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cannot remove the last admin user"}

    def test_admin_cannot_deactivate_self(
        self, client: TestClient, db: Session, owner: User, owner_token: str
    ) -> None:
        _member(db, owner, "second.admin@example.com", role=RoleEnum.ADMIN)
        resp = client.put(
            f"/api/users/{owner.id}", json={"isActive": False}, headers=auth(owner_token)
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cannot deactivate yourself"}

    def test_second_admin_can_be_demoted(
        self, client: TestClient, db: Session, owner: User, owner_token: str
    ) -> None:
        other = _member(db, owner, "second.admin@example.com", role=RoleEnum.ADMIN)
        resp = client.put(
            f"/api/users/{other.id}", json={"role": "user"}, headers=auth(owner_token)
        )
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "user"
