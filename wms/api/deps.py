# wms/api/deps.py
from __future__ import annotations

from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session, sessionmaker

from wms.db.session import SessionLocal
from wms.schemas.session import SessionUser
from wms.services.session_service import resolve_session
from wms.utils.jwt import decode_token


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Factory for reads that open their own sessions (parallel aggregation)."""
    return SessionLocal


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def current_identity(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[SessionUser]:
    """
    Enriched session user for the bearer token, or None.
    Services turn None into an Unauthorized result themselves.
    """
    raw = _extract_bearer(authorization)
    if not raw:
        return None

    payload = decode_token(raw)
    if not payload or not payload.get("sub"):
        return None

    return resolve_session(db, str(payload["sub"]))
