"""Seed the database with a demo business, its admin user and sample data.

Usage:
    python -m backend.scripts.seed
"""

from __future__ import annotations

import os

from backend.app.core.database import SessionLocal, engine, init_db
from backend.app.models.accounting import Category, Customer, Supplier, User
from backend.app.models.enums import CategoryType, CustomerStatus, CustomerType
from backend.app.schemas.auth import RegisterRequest
from backend.app.services.auth import register_user

DEMO_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@example.com")
DEMO_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "ChangeMe123")

CATEGORIES: list[tuple[str, CategoryType]] = [
    ("Sales", CategoryType.INCOME),
    ("Consulting", CategoryType.INCOME),
    ("Rent", CategoryType.EXPENSE),
    ("Utilities", CategoryType.EXPENSE),
    ("Supplies", CategoryType.EXPENSE),
]


def seed() -> None:
    if engine.dialect.name == "sqlite":
        init_db()
    db = SessionLocal()
    try:
        admin = db.query(User).filter_by(email=DEMO_EMAIL).first()
        if admin:
            print(f"Admin user {DEMO_EMAIL} already exists, nothing to do.")
            return

        # Creates the business and its chart of accounts, and commits
        admin = register_user(
            db,
            RegisterRequest(
                email=DEMO_EMAIL,
                password=DEMO_PASSWORD,
                first_name="Demo",
                last_name="Admin",
                business_name="Demo Business",
            ),
        )
        business_id = admin.business_id
        print(f"Created business {business_id} with admin user {DEMO_EMAIL}.")

        for name, category_type in CATEGORIES:
            db.add(Category(business_id=business_id, name=name, category_type=category_type))
            print(f"Created category: {name}")

        db.add(
            Customer(
                business_id=business_id,
                name="Acme Retail",
                customer_type=CustomerType.BUSINESS,
                email="billing@acme.example",
                status=CustomerStatus.ACTIVE,
            )
        )
        print("Created customer: Acme Retail")

        db.add(
            Supplier(
                business_id=business_id,
                name="Office Depot",
                contact_person="Sam Lee",
                payment_terms="Net 30",
            )
        )
        print("Created supplier: Office Depot")

        db.commit()
        print("Seed complete.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
