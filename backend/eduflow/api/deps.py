from collections.abc import Callable, Generator, Iterable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from eduflow.core.exceptions import AuthorizationError
from eduflow.core.security import Principal, decode_token
from eduflow.db.session import SessionLocal
from eduflow.models.user import UserRole

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise AuthorizationError("Token is required")
    try:
        payload = decode_token(credentials.credentials)
    except JWTError as exc:
        raise AuthorizationError("Invalid token") from exc

    user_id = payload.get("id") or payload.get("sub")
    if not user_id:
        raise AuthorizationError("Invalid token")
    try:
        role = UserRole(payload.get("role"))
    except ValueError as exc:
        raise AuthorizationError("Invalid token") from exc
    return Principal(id=str(user_id), role=role)


def require_roles(*roles: UserRole) -> Callable[[Principal], Principal]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed_roles:
            raise AuthorizationError("Forbidden")
        return principal

    return role_checker
