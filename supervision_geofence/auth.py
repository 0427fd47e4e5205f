"""JWT authentication and role capability checks."""
import hmac
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, FrozenSet

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from supervision_geofence.settings import settings

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller and the roles carried by their token."""

    id: int
    username: str
    roles: FrozenSet[str] = field(default_factory=frozenset)


def has_any_role(actor: Actor, roles: Iterable[str]) -> bool:
    """True when the actor holds at least one of ``roles``."""
    return bool(actor.roles & frozenset(roles))


def authenticate_user(username: str, password: str) -> bool:
    """Check credentials against the configured admin account."""
    user_ok = hmac.compare_digest(username, settings.admin_user)
    pass_ok = hmac.compare_digest(password, settings.admin_pass)
    return user_ok and pass_ok


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Optional[dict]:
    """Decode a token; returns None when it is invalid or expired."""
    try:
        return jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except jwt.InvalidTokenError:
        return None


def actor_from_payload(payload: dict) -> Actor:
    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    return Actor(
        id=payload["uid"],
        username=str(payload["sub"]),
        roles=frozenset(roles),
    )


def _identifies_user(payload: Optional[dict]) -> bool:
    # overrides are attributed to uid, so it must be a real integer id
    if not payload or "sub" not in payload:
        return False
    uid = payload.get("uid")
    return isinstance(uid, int) and not isinstance(uid, bool)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Actor:
    """Resolve the bearer token into an Actor or answer 401."""
    payload = verify_token(credentials.credentials) if credentials else None
    if not _identifies_user(payload):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor_from_payload(payload)
