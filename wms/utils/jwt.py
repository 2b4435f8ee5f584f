# wms/utils/jwt.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from wms.core.config import settings


def create_access_token(subject: str,
                        expires_delta: Optional[timedelta] = None) -> str:
    """
    Identity claims only. Profile and permissions are re-derived per request,
    so nothing that can go stale is signed into the token.
    """
    now = datetime.now(timezone.utc)
    delta = expires_delta or timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": subject,  # user id
        "iat": now,
        "exp": now + delta,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_token(raw_token: str) -> Optional[dict]:
    if not raw_token:
        return None
    try:
        return jwt.decode(raw_token,
                          settings.JWT_SECRET,
                          algorithms=[settings.JWT_ALG])
    except JWTError:
        return None
