from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from backend.app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"

# Logout deny-list; single process only
_revoked_tokens: set[str] = set()


def create_access_token(
    subject: str,
    business_id: int,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"sub": subject, "business_id": business_id, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Return the claims of *token*; raises ``jose.JWTError`` when invalid."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def revoke_token(token: str) -> None:
    """Add a token to the deny-list (logout)."""
    _revoked_tokens.add(token)


def is_token_revoked(token: str) -> bool:
    return token in _revoked_tokens


def cleanup_expired_tokens() -> int:
    """Drop expired or malformed tokens from the deny-list.

    Returns the number of tokens removed.
    """
    expired: list[str] = []
    for token in _revoked_tokens:
        try:
            decode_access_token(token)
        except JWTError:
            expired.append(token)
    for token in expired:
        _revoked_tokens.discard(token)
    return len(expired)
