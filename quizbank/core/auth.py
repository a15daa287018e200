from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import FrozenSet, List, Optional
import jwt
from datetime import datetime, timedelta, timezone
from quizbank.core.config import settings

PARTICIPANT = "participant"
ADMIN = "admin"
ROLES: FrozenSet[str] = frozenset({PARTICIPANT, ADMIN})


class TokenData(BaseModel):
    """Caller identity. ``sub`` is the opaque user id attempts and history are keyed by."""
    sub: str
    roles: List[str]


bearer = HTTPBearer(auto_error=False)


def create_token(user_id: str, roles: List[str], ttl_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    ttl = ttl_minutes if ttl_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    payload = {"sub": user_id, "roles": roles, "iat": int(now.timestamp()), "exp": int((now + timedelta(minutes=ttl)).timestamp())}
    return jwt.encode(payload, settings.APP_SECRET.get_secret_value(), algorithm=settings.ALGORITHM)


def get_current_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> TokenData:
    """Decode the bearer token into a TokenData.

    Missing, expired or tampered tokens are 401. Roles this service does not
    know are dropped rather than rejected, so tokens minted for other
    services still identify the user.
    """
    if creds is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")
    try:
        payload = jwt.decode(creds.credentials, settings.APP_SECRET.get_secret_value(), algorithms=[settings.ALGORITHM])
        roles = [r for r in payload.get("roles", []) if r in ROLES]
        return TokenData(sub=str(payload["sub"]), roles=roles)
    except (jwt.PyJWTError, KeyError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")


def require_roles(*required: str):
    """Dependency that lets the caller through when they hold any of ``required``; 403 otherwise."""
    unknown = set(required) - ROLES
    if unknown:
        raise ValueError(f"unknown roles: {sorted(unknown)}")

    def checker(user: TokenData = Depends(get_current_user)) -> TokenData:
        if not set(user.roles) & set(required):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user
    return checker


# quiz routes: anyone who may take a quiz
quiz_taker = require_roles(PARTICIPANT, ADMIN)
# bank management routes
bank_admin = require_roles(ADMIN)
