from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_user, oauth2_scheme
from backend.app.core.config import settings
from backend.app.core.database import get_db
from backend.app.core.security import (
    cleanup_expired_tokens,
    create_access_token,
    revoke_token,
)
from backend.app.middleware.rate_limit import InMemoryRateLimiter
from backend.app.models.accounting import User
from backend.app.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserOut,
)
from backend.app.schemas.common import MessageResponse
from backend.app.services import auth as auth_service

router = APIRouter()

# Per-IP; single process only
login_limiter = InMemoryRateLimiter(
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    max_attempts=settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _token_for(user: User) -> TokenResponse:
    return TokenResponse(
        token=create_access_token(subject=str(user.id), business_id=user.business_id),
        user=UserOut.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> TokenResponse:
    user = auth_service.register_user(db, payload, ip_address=_client_ip(request))
    return _token_for(user)


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> TokenResponse:
    ip = _client_ip(request)
    login_limiter.check(ip)
    user = auth_service.authenticate(db, payload.email, payload.password, ip_address=ip)
    return _token_for(user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.post("/logout", response_model=MessageResponse)
def logout(
    token: str = Depends(oauth2_scheme),
    _current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Invalidate the current access token."""
    cleanup_expired_tokens()
    revoke_token(token)
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=ProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)) -> dict:
    return {"user": current_user}


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    user = auth_service.update_profile(db, current_user, payload)
    return {"user": user}


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    auth_service.change_password(
        db, current_user, payload.current_password, payload.new_password
    )
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> MessageResponse:
    # Same answer whether or not the account exists
    ip = _client_ip(request)
    login_limiter.check(ip)
    auth_service.request_password_reset(db, payload.email, ip_address=ip)
    return MessageResponse(
        message="If the email exists, a password reset link has been sent"
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> MessageResponse:
    auth_service.reset_password(
        db, payload.token, payload.new_password, ip_address=_client_ip(request)
    )
    return MessageResponse(message="Password reset successfully")
