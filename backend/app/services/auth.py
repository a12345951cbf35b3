from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.exceptions import AuthenticationError, ConflictError, ValidationError
from backend.app.core.security import get_password_hash, verify_password
from backend.app.models.accounting import Business, RoleEnum, User
from backend.app.schemas.auth import ProfileUpdate, RegisterRequest
from backend.app.services.accounts import seed_chart_of_accounts
from backend.app.services.audit import log_action
from backend.app.services.mailer import email_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def register_user(db: Session, payload: RegisterRequest, ip_address: str | None = None) -> User:
    """Create a business, its admin user and its default chart of accounts."""
    email = _normalize_email(payload.email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    business = Business(name=payload.business_name)
    db.add(business)
    db.flush()

    user = User(
        business_id=business.id,
        email=email,
        hashed_password=get_password_hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=RoleEnum.ADMIN,
    )
    db.add(user)
    seed_chart_of_accounts(db, business.id)
    db.flush()

    log_action(
        db,
        business_id=business.id,
        user_id=user.id,
        action="REGISTER",
        resource_type="users",
        resource_id=str(user.id),
        changes={"email": email, "business_name": payload.business_name},
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(user)
    logger.info("Registered business %s with admin user %s", business.id, user.id)
    return user


def authenticate(
    db: Session, email: str, password: str, ip_address: str | None = None
) -> User:
    """Return the active user matching the credentials and stamp ``last_login``.

    Unknown email, inactive account and wrong password all fail with the
    same message.
    """
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None or not user.is_active:
        logger.info("Rejected login for unknown or inactive account")
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(password, user.hashed_password):
        log_action(
            db,
            business_id=user.business_id,
            user_id=user.id,
            action="LOGIN_FAILED",
            resource_type="auth",
            resource_id=str(user.id),
            changes={"reason": "invalid_credentials"},
            ip_address=ip_address,
        )
        db.commit()
        raise AuthenticationError(INVALID_CREDENTIALS)

    user.last_login = datetime.now(timezone.utc)
    log_action(
        db,
        business_id=user.business_id,
        user_id=user.id,
        action="LOGIN_SUCCESS",
        resource_type="auth",
        resource_id=str(user.id),
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(user)
    return user


# ── Self-service account management ───────────────────────────────────────


def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise ValidationError("No valid fields to update")
    for field, value in changes.items():
        setattr(user, field, value)
    log_action(
        db,
        business_id=user.business_id,
        user_id=user.id,
        action="PROFILE_UPDATED",
        resource_type="users",
        resource_id=str(user.id),
        changes=changes,
    )
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise ValidationError("Current password is incorrect")
    user.hashed_password = get_password_hash(new_password)
    log_action(
        db,
        business_id=user.business_id,
        user_id=user.id,
        action="PASSWORD_CHANGED",
        resource_type="users",
        resource_id=str(user.id),
    )
    db.commit()
    logger.info("User %s changed their password", user.id)


def _token_digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def request_password_reset(
    db: Session, email: str, ip_address: str | None = None
) -> str | None:
    """Issue a one-time reset token and email it to the user.

    Returns the token, or ``None`` when no active account has that email.
    Callers must answer the same way in both cases.
    """
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown or inactive account")
        return None

    token = secrets.token_urlsafe(32)
    user.reset_token_hash = _token_digest(token)
    user.reset_token_expires_at = datetime.now(timezone.utc) + timedelta(
        minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
    )
    log_action(
        db,
        business_id=user.business_id,
        user_id=user.id,
        action="PASSWORD_RESET_REQUESTED",
        resource_type="users",
        resource_id=str(user.id),
        ip_address=ip_address,
    )
    db.commit()
    email_service.send_password_reset(user.email, token)
    return token


def reset_password(
    db: Session, token: str, new_password: str, ip_address: str | None = None
) -> User:
    user = (
        db.query(User)
        .filter(
            User.reset_token_hash == _token_digest(token),
            User.reset_token_expires_at > datetime.now(timezone.utc),
            User.is_active.is_(True),
        )
        .first()
    )
    if user is None:
        raise ValidationError("Invalid or expired reset token")

    user.hashed_password = get_password_hash(new_password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    log_action(
        db,
        business_id=user.business_id,
        user_id=user.id,
        action="PASSWORD_RESET",
        resource_type="users",
        resource_id=str(user.id),
        ip_address=ip_address,
    )
    db.commit()
    logger.info("Password reset completed for user %s", user.id)
    return user
