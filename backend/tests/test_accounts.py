"""Tests for the chart of accounts and categories."""

from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.models.accounting import AuditLog, User
from backend.tests.conftest import auth


class TestAccountsAPI:
    def test_list_ordered_by_code(
        self, client: TestClient, owner: User, owner_token: str
    ) -> None:
        resp = client.get("/api/accounts", headers=auth(owner_token))
        assert resp.status_code == 200
        codes = [a["code"] for a in resp.json()]
        assert codes == sorted(codes)
        assert codes[0] == "1000"
        assert all(a["current_balance"] == 0.0 for a in resp.json())

    def test_create_account(
        self, client: TestClient, db: Session, owner_token: str
    ) -> None:
        resp = client.post(
            "/api/accounts",
            json={"code": "1500", "name": "Equipment", "accountType": "asset"},
            headers=auth(owner_token),
        )
        assert resp.status_code == 201
        assert resp.json()["account_type"] == "asset"
        assert (
            db.query(AuditLog)
            .filter(AuditLog.table_name == "accounts", AuditLog.action == "CREATE")
            .count()
            == 1
        )

    def test_duplicate_code_is_400(self, client: TestClient, owner_token: str) -> None:
        resp = client.post(
            "/api/accounts",
            json={"code": "1000", "name": "Petty Cash", "accountType": "asset"},
            headers=auth(owner_token),
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Account code '1000' already exists"}

    def test_codes_are_scoped_per_business(
        self, client: TestClient, owner_token: str, outsider_token: str
    ) -> None:
        body = {"code": "1500", "name": "Vehicles", "accountType": "asset"}
        assert client.post("/api/accounts", json=body, headers=auth(owner_token)).status_code == 201
        resp = client.post("/api/accounts", json=body, headers=auth(outsider_token))
        assert resp.status_code == 201


class TestCategoriesAPI:
    def test_create_and_list(self, client: TestClient, owner_token: str) -> None:
        for name in ("Utilities", "Consulting"):
            resp = client.post(
                "/api/categories",
                json={"name": name, "categoryType": "expense"},
                headers=auth(owner_token),
            )
            assert resp.status_code == 201

        resp = client.get("/api/categories", headers=auth(owner_token))
        assert [c["name"] for c in resp.json()] == ["Consulting", "Utilities"]

    def test_blank_name_is_400(self, client: TestClient, owner_token: str) -> None:
        resp = client.post(
            "/api/categories", json={"name": "   "}, headers=auth(owner_token)
        )
        assert resp.status_code == 400
