"""Bearer token verification and principal resolution.

Tokens are issued elsewhere; this module only checks the signature and
expiry and then loads the user so the global role is always current.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Literal
from uuid import uuid4

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from clubhub.api.deps import get_db_session
from clubhub.core.config import Settings, get_settings
from clubhub.models import User
from clubhub.services.policy import Principal

security_scheme = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    sub: str
    type: Literal["access"]
    iat: datetime
    exp: datetime
    jti: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    user_id: str,
    *,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign an access token for ``user_id``. Used by seeding scripts and tests."""

    settings = settings or get_settings()
    now = datetime.now(UTC)
    expires_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "jti": uuid4().hex,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, *, settings: Settings | None = None) -> TokenPayload:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise _unauthorized("Invalid token") from exc
    try:
        return TokenPayload(**payload)
    except ValidationError as exc:
        raise _unauthorized("Invalid token") from exc


def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    session: Session = Depends(get_db_session),
) -> Principal:
    if credentials is None:
        raise _unauthorized("Not authenticated")
    payload = decode_access_token(credentials.credentials)
    user = session.get(User, payload.sub)
    if user is None:
        raise _unauthorized("Unknown user")
    request.state.actor_id = user.id
    return Principal(id=user.id, global_role=user.role)


__all__ = [
    "TokenPayload",
    "create_access_token",
    "decode_access_token",
    "get_current_principal",
    "security_scheme",
]
