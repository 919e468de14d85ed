import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .exceptions import AuthorizationError
from .models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed bearer token whose subject is the user id"""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": str(user_id), "role": role, "exp": expire}
    return jose_jwt.encode(payload, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry, returning the claims"""
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"ℹ️ Rejected bearer token: {e}")
        raise HTTPException(status_code=401, detail="Token is not valid") from e


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user from the Authorization header"""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, token length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    claims = decode_access_token(token)
    subject = claims.get("sub")
    if not subject or not str(subject).isdigit():
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.id == int(subject)).first()
    if not user or not user.is_active:
        logger.warning(f"⚠️ Token subject {subject} has no active user")
        raise HTTPException(status_code=401, detail="User not found")

    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous requests resolve to None"""
    if not credentials:
        return None
    return await get_current_user(credentials, db)


def require_role(user: User, allowed_roles: list[str]) -> None:
    """Raise AuthorizationError unless the user holds one of the roles"""
    allowed = {r.lower() for r in allowed_roles}
    if (user.role or "").lower() not in allowed:
        raise AuthorizationError()
