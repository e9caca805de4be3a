from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from eduflow.core.config import get_settings
from eduflow.models.user import UserRole


def create_access_token(
    user_id: str,
    role: str,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims: dict[str, Any] = {
        "id": str(user_id),
        "sub": str(user_id),
        "role": str(getattr(role, "value", role)),
        "exp": expire,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


@dataclass(frozen=True)
class Principal:
    """Caller identity decoded from a verified bearer token."""

    id: str
    role: UserRole
