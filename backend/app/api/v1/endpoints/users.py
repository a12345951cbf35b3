from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.api.deps import require_admin
from backend.app.core.database import get_db
from backend.app.models.accounting import User
from backend.app.schemas.auth import UserAdminOut, UserCreate, UserResponse, UserUpdate
from backend.app.schemas.common import MessageResponse
from backend.app.services import users as user_service

router = APIRouter()


@router.get("", response_model=list[UserAdminOut])
def list_users(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> list[User]:
    return user_service.list_users(db, admin.business_id)


@router.get("/{user_id}", response_model=UserAdminOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> User:
    return user_service.get_user(db, admin.business_id, user_id)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict:
    user = user_service.create_user(db, admin.business_id, admin.id, payload)
    return {"message": "User created successfully", "user": user}


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict:
    user = user_service.update_user(db, admin.business_id, admin.id, user_id, payload)
    return {"message": "User updated successfully", "user": user}


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> MessageResponse:
    user_service.delete_user(db, admin.business_id, admin.id, user_id)
    return MessageResponse(message="User deleted successfully")
