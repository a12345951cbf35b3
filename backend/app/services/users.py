"""User administration within a business.

Every mutation is audit-logged and committed here. A business always keeps
at least one active admin.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from backend.app.core.exceptions import ConflictError, StateError, ValidationError
from backend.app.core.security import get_password_hash
from backend.app.models.accounting import (
    AuditLog,
    Invoice,
    Receipt,
    RoleEnum,
    Transaction,
    User,
)
from backend.app.schemas.auth import UserCreate, UserUpdate
from backend.app.services.audit import log_action
from backend.app.services.common import get_owned

logger = logging.getLogger(__name__)

LAST_ADMIN_MESSAGE = "Cannot remove the last admin user"


def _active_admin_count(db: Session, business_id: int) -> int:
    return (
        db.query(User)
        .filter(
            User.business_id == business_id,
            User.role == RoleEnum.ADMIN,
            User.is_active.is_(True),
        )
        .count()
    )


def _is_last_admin(db: Session, user: User) -> bool:
    return (
        user.role == RoleEnum.ADMIN
        and user.is_active
        and _active_admin_count(db, user.business_id) <= 1
    )


def list_users(db: Session, business_id: int) -> list[User]:
    return (
        db.query(User)
        .filter(User.business_id == business_id)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def get_user(db: Session, business_id: int, user_id: int) -> User:
    return get_owned(db, User, user_id, business_id)


def create_user(db: Session, business_id: int, admin_id: int, payload: UserCreate) -> User:
    email = payload.email.strip().lower()
    if db.query(User.id).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    user = User(
        business_id=business_id,
        email=email,
        hashed_password=get_password_hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
    )
    db.add(user)
    db.flush()
    log_action(
        db,
        business_id=business_id,
        user_id=admin_id,
        action="USER_CREATED",
        resource_type="users",
        resource_id=str(user.id),
        changes={"email": email, "role": payload.role.value},
    )
    db.commit()
    db.refresh(user)
    logger.info("User %s created in business %s", user.id, business_id)
    return user


def update_user(
    db: Session, business_id: int, admin_id: int, user_id: int, payload: UserUpdate
) -> User:
    user = get_owned(db, User, user_id, business_id)
    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise ValidationError("No valid fields to update")

    demoted = changes.get("role", user.role) != RoleEnum.ADMIN
    deactivated = changes.get("is_active", user.is_active) is False
    if (demoted or deactivated) and _is_last_admin(db, user):
        raise StateError(LAST_ADMIN_MESSAGE)
    if deactivated and user.id == admin_id:
        raise StateError("Cannot deactivate yourself")

    for field, value in changes.items():
        setattr(user, field, value)
    log_action(
        db,
        business_id=business_id,
        user_id=admin_id,
        action="USER_UPDATED",
        resource_type="users",
        resource_id=str(user.id),
        changes=changes,
    )
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, business_id: int, admin_id: int, user_id: int) -> None:
    """Hard-delete a user who has no recorded activity.

    Users referenced by ledger documents or audit history can only be
    deactivated.
    """
    user = get_owned(db, User, user_id, business_id)
    if _is_last_admin(db, user):
        raise StateError(LAST_ADMIN_MESSAGE)

    referenced = any(
        db.query(model.id).filter(column == user.id).first()
        for model, column in (
            (Transaction, Transaction.created_by),
            (Receipt, Receipt.created_by),
            (Invoice, Invoice.created_by),
            (AuditLog, AuditLog.changed_by),
        )
    )
    if referenced:
        raise ConflictError(
            "Cannot delete user with recorded activity. Consider deactivating instead."
        )

    log_action(
        db,
        business_id=business_id,
        user_id=admin_id,
        action="USER_DELETED",
        resource_type="users",
        resource_id=str(user.id),
        changes={"email": user.email},
    )
    db.delete(user)
    db.commit()
    logger.info("User %s deleted from business %s", user_id, business_id)
