# FILE: wms/services/session_service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from wms.core.security import verify_password
from wms.models.user import User
from wms.schemas.common import ActionResult, ErrorKind
from wms.schemas.session import GrantOut, LoginOut, SessionToken, SessionUser
from wms.utils.jwt import create_access_token
from wms.utils.timezone import now_local

logger = logging.getLogger(__name__)

SIGN_IN = "signIn"
UNKNOWN_USER = "Unknown User"


def active_grants(grants: Iterable[Any], now: datetime) -> List[Any]:
    """
    A grant is active iff it never expires or expires strictly after `now`.
    Evaluated on every call; the result is never stored.
    """
    return [
        g for g in grants
        if g.expires_at is None or g.expires_at > now
    ]


def display_name(first_name: Optional[str], last_name: Optional[str],
                 username: Optional[str]) -> str:
    full = f"{first_name or ''} {last_name or ''}".strip()
    if full:
        return full
    return username or UNKNOWN_USER


def _load_user(db: Session, user_id: str) -> Optional[User]:
    return (db.query(User).options(selectinload(
        User.permissions)).filter(User.id == user_id).first())


def _record_sign_in(db: Session, user_id: str, now: datetime) -> None:
    try:
        db.query(User).filter(User.id == user_id).update(
            {User.last_login_at: now}, synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record last login for user %s", user_id)
        raise


def enrich_token(db: Session,
                 token: SessionToken,
                 *,
                 trigger: Optional[str] = None,
                 now: Optional[datetime] = None) -> SessionToken:
    """
    Refresh the session token from the user record.

    - no `sub`: token returned as is
    - sign-in: last_login_at is written before the user is re-read
    - unknown user: token returned as is (no enrichment available)
    - otherwise a new token with profile fields and only active grants
    """
    if not token.sub:
        return token

    now = now or now_local()

    if trigger == SIGN_IN:
        _record_sign_in(db, token.sub, now)

    user = _load_user(db, token.sub)
    if not user:
        return token

    grants = [
        GrantOut(
            id=g.id,
            permission=g.permission,
            granted_at=g.granted_at,
            expires_at=g.expires_at,
        ) for g in active_grants(user.permissions or [], now)
    ]

    return token.model_copy(
        update={
            "id": user.id,
            "email": user.email,
            "username": user.username,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "employee_id": user.employee_id,
            "department": user.department,
            "position": user.position,
            "phone": user.phone,
            "is_active": user.is_active,
            "role": user.role.value if user.role else None,
            "permissions": grants,
            "last_login_at": user.last_login_at,
        })


def build_session_user(token: SessionToken) -> Optional[SessionUser]:
    user_id = token.id or token.sub
    if not user_id:
        return None

    return SessionUser(
        id=user_id,
        email=token.email,
        name=display_name(token.first_name, token.last_name, token.username),
        username=token.username,
        first_name=token.first_name,
        last_name=token.last_name,
        employee_id=token.employee_id,
        department=token.department,
        position=token.position,
        phone=token.phone,
        role=token.role or "USER",
        is_active=bool(token.is_active),
        permissions=list(token.permissions or []),
        last_login_at=token.last_login_at,
    )


def resolve_session(db: Session,
                    subject: str,
                    now: Optional[datetime] = None) -> Optional[SessionUser]:
    """
    Identity for one request. Tokens of unknown or deactivated users
    resolve to no identity.
    """
    token = enrich_token(db, SessionToken(sub=subject), now=now)
    if token.id is None or not token.is_active:
        return None
    return build_session_user(token)


def can_sign_in(db: Session, user_id: str) -> bool:
    user = db.get(User, user_id)
    return bool(user and user.is_active)


def authenticate(db: Session, login: str, password: str) -> Optional[User]:
    login = (login or "").strip()
    if not login:
        return None

    user = (db.query(User).filter(
        or_(User.username == login, User.email == login)).first())
    if not user or not verify_password(password, user.password_hash):
        return None
    if not can_sign_in(db, user.id):
        return None
    return user


def sign_in(db: Session,
            login: str,
            password: str,
            now: Optional[datetime] = None) -> ActionResult[LoginOut]:
    try:
        user = authenticate(db, login, password)
        if not user:
            return ActionResult.fail(ErrorKind.UNAUTHORIZED,
                                     "Invalid credentials")

        token = enrich_token(db,
                             SessionToken(sub=user.id),
                             trigger=SIGN_IN,
                             now=now)
    except SQLAlchemyError:
        logger.exception("Sign-in failed for %s", login)
        return ActionResult.fail(ErrorKind.DATA_ACCESS, "Failed to sign in")

    session_user = build_session_user(token)
    return ActionResult.ok(
        LoginOut(
            access_token=create_access_token(user.id),
            user=session_user,
        ))
