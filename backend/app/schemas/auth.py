from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from backend.app.models.enums import RoleEnum
from backend.app.schemas.common import ORMModel, RequestModel


class RegisterRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    business_name: str = Field(min_length=1, max_length=255)


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(ORMModel):
    id: int
    business_id: int
    email: str
    first_name: str
    last_name: str
    role: RoleEnum
    is_active: bool
    last_login: datetime | None = None


class TokenResponse(ORMModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


class ProfileOut(UserOut):
    business_name: str


class ProfileResponse(ORMModel):
    user: ProfileOut


class ProfileUpdate(RequestModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)


class ChangePasswordRequest(RequestModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class ForgotPasswordRequest(RequestModel):
    email: EmailStr


class ResetPasswordRequest(RequestModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


# ─── User administration ──────────────────────────────────────────────────────


class UserCreate(RequestModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: RoleEnum = RoleEnum.USER


class UserUpdate(RequestModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: RoleEnum | None = None
    is_active: bool | None = None


class UserAdminOut(UserOut):
    created_at: datetime | None = None


class UserResponse(ORMModel):
    message: str
    user: UserAdminOut
