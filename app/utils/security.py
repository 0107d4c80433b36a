# app/utils/security.py
"""
Bearer-token identity.
Tokens are HS256 JWTs carrying the caller's id (sub) and role. The token is
trusted as issued by the identity service; no user table is kept here.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import settings

ROLES = {"user", "admin", "super_admin", "security_guard", "system_admin"}
ADMIN_ROLES = {"admin", "super_admin"}

security = HTTPBearer()


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def create_access_token(user_id: str, role: str, expires_minutes: int = None) -> str:
    """Mint a token for user_id with role (setup scripts and tests)."""
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": datetime.utcnow() + timedelta(minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired.",
                            headers={"WWW-Authenticate": "Bearer"})
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.",
                            headers={"WWW-Authenticate": "Bearer"})

    user_id, role = payload.get("sub"), payload.get("role")
    if not user_id or role not in ROLES:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.",
                            headers={"WWW-Authenticate": "Bearer"})
    return CurrentUser(id=str(user_id), role=role)


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> CurrentUser:
    """FastAPI dependency — caller identity from the bearer token."""
    return decode_access_token(credentials.credentials)


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Access denied. Admin privileges required.")
    return user
