# FILE: wms/services/user_service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from wms.core.rbac import require_any
from wms.core.security import hash_password
from wms.models.permission import Permission, UserPermission
from wms.models.user import User
from wms.schemas.common import ActionResult, ErrorKind
from wms.schemas.session import GrantOut
from wms.schemas.user import UserCreate, UserOut, UserUpdate
from wms.services.audit_logger import log_audit
from wms.services.session_service import active_grants, display_name
from wms.utils.timezone import now_local

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "username",
    "email",
    "first_name",
    "last_name",
    "employee_id",
    "department",
    "position",
    "phone",
    "role",
    "is_active",
)

# NOT NULL columns a partial update may name
REQUIRED_FIELDS = ("role", "is_active")

SELF_DEACTIVATION = "You cannot deactivate your own account"

# ---------- helpers ----------


def _snapshot(u: User) -> Dict[str, Any]:
    out = {f: getattr(u, f) for f in PROFILE_FIELDS}
    out["role"] = u.role.value if u.role else None
    return out


def _perm_snapshot(u: User) -> Dict[str, Any]:
    return {"permissions": sorted(p.permission for p in u.permissions)}


def to_user_out(u: User, now: Optional[datetime] = None) -> UserOut:
    now = now or now_local()
    return UserOut(
        id=u.id,
        username=u.username,
        email=u.email,
        name=display_name(u.first_name, u.last_name, u.username),
        first_name=u.first_name,
        last_name=u.last_name,
        employee_id=u.employee_id,
        department=u.department,
        position=u.position,
        phone=u.phone,
        role=u.role,
        is_active=u.is_active,
        last_login_at=u.last_login_at,
        created_at=u.created_at,
        permissions=[
            GrantOut.model_validate(g)
            for g in active_grants(u.permissions or [], now)
        ],
    )


def _get(db: Session, user_id: str) -> Optional[User]:
    return (db.query(User).options(selectinload(
        User.permissions)).filter(User.id == user_id).first())


def _reload(db: Session, user_id: str) -> ActionResult[UserOut]:
    try:
        u = _get(db, user_id)
    except SQLAlchemyError:
        logger.exception("Error fetching user %s", user_id)
        return ActionResult.fail(ErrorKind.DATA_ACCESS, "Failed to fetch user")
    if not u:
        return ActionResult.not_found("User")
    return ActionResult.ok(to_user_out(u))


def _validate_permissions(perms: Iterable[Any]) -> List[str]:
    out: List[str] = []
    for p in perms:
        code = p.value if isinstance(p, Permission) else str(p)
        try:
            Permission(code)
        except ValueError:
            raise ValueError(f"Invalid permission: {code}")
        if code not in out:
            out.append(code)
    return out


def _audit(db: Session, identity: Any, action: str, user_id: str,
           old: Optional[Dict[str, Any]], new: Optional[Dict[str, Any]],
           transaction_type: str) -> None:
    log_audit(
        db,
        user_id=identity.id,
        user_email=identity.email,
        action=action,
        table_name="users",
        record_id=user_id,
        old_values=old,
        new_values=new,
        transaction_type=transaction_type,
    )


def _gate(identity: Any) -> Optional[ActionResult]:
    if not identity:
        return ActionResult.unauthorized()
    return require_any(identity, [Permission.MANAGE_USERS])


# ---------- queries ----------


def list_users(identity: Any, db: Session) -> ActionResult[List[UserOut]]:
    denied = _gate(identity)
    if denied:
        return denied
    try:
        users = (db.query(User).options(selectinload(User.permissions)).order_by(
            User.created_at.desc()).all())
    except SQLAlchemyError:
        logger.exception("Error fetching users")
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to fetch users")

    now = now_local()
    return ActionResult.ok([to_user_out(u, now) for u in users])


def get_user(identity: Any, db: Session,
             user_id: str) -> ActionResult[UserOut]:
    denied = _gate(identity)
    if denied:
        return denied
    return _reload(db, user_id)


# ---------- mutations ----------


def create_user(identity: Any, db: Session,
                payload: UserCreate) -> ActionResult[UserOut]:
    denied = _gate(identity)
    if denied:
        return denied

    try:
        if db.query(User.id).filter(User.username == payload.username).first():
            return ActionResult.fail(ErrorKind.CONFLICT,
                                     "Username already exists")
        if payload.email and db.query(User.id).filter(
                User.email == payload.email).first():
            return ActionResult.fail(ErrorKind.CONFLICT,
                                     "Email already exists")

        u = User(
            username=payload.username,
            email=payload.email,
            password_hash=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            employee_id=payload.employee_id,
            department=payload.department,
            position=payload.position,
            phone=payload.phone,
            role=payload.role,
            is_active=payload.is_active,
        )
        db.add(u)
        db.commit()
        user_id = u.id
        new = _snapshot(u)
    except IntegrityError:
        db.rollback()
        return ActionResult.fail(ErrorKind.CONFLICT, "User already exists")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating user %s", payload.username)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to create user")

    _audit(db, identity, "CREATE", user_id, None, new, "USER_CREATE")
    return _reload(db, user_id)


def update_user(identity: Any, db: Session, user_id: str,
                payload: UserUpdate) -> ActionResult[UserOut]:
    denied = _gate(identity)
    if denied:
        return denied

    # an explicit null on a NOT NULL column leaves it unchanged
    data = {
        k: v
        for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k not in REQUIRED_FIELDS
    }
    if data.get("is_active") is False and identity.id == user_id:
        return ActionResult.fail(ErrorKind.VALIDATION, SELF_DEACTIVATION)

    try:
        u = _get(db, user_id)
        if not u:
            return ActionResult.not_found("User")

        email = data.get("email")
        if email and db.query(User.id).filter(User.email == email,
                                              User.id != user_id).first():
            return ActionResult.fail(ErrorKind.CONFLICT,
                                     "Email already exists")

        old = _snapshot(u)
        for k, v in data.items():
            setattr(u, k, v)
        db.commit()
        new = _snapshot(u)
    except IntegrityError:
        db.rollback()
        return ActionResult.fail(ErrorKind.CONFLICT,
                                 "User update conflicts with an existing user")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating user %s", user_id)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to update user")

    _audit(db, identity, "UPDATE", user_id, old, new, "USER_UPDATE")
    return _reload(db, user_id)


def deactivate_user(identity: Any, db: Session,
                    user_id: str) -> ActionResult[UserOut]:
    """Users are never deleted, only deactivated."""
    denied = _gate(identity)
    if denied:
        return denied
    if identity.id == user_id:
        return ActionResult.fail(ErrorKind.VALIDATION, SELF_DEACTIVATION)

    try:
        u = _get(db, user_id)
        if not u:
            return ActionResult.not_found("User")
        old = _snapshot(u)
        u.is_active = False
        db.commit()
        new = _snapshot(u)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error deactivating user %s", user_id)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to deactivate user")

    _audit(db, identity, "UPDATE", user_id, old, new, "USER_DEACTIVATE")
    return _reload(db, user_id)


def set_user_permissions(
    identity: Any,
    db: Session,
    user_id: str,
    permissions: Iterable[Any],
    expires_at: Optional[datetime] = None,
) -> ActionResult[UserOut]:
    """Replace every grant of the user with `permissions`."""
    denied = _gate(identity)
    if denied:
        return denied

    try:
        codes = _validate_permissions(permissions)
    except ValueError as e:
        return ActionResult.fail(ErrorKind.VALIDATION, str(e))

    try:
        u = _get(db, user_id)
        if not u:
            return ActionResult.not_found("User")
        old = _perm_snapshot(u)

        u.permissions.clear()
        # old rows must be gone before re-inserting the same (user, permission)
        db.flush()

        now = now_local()
        for code in codes:
            u.permissions.append(
                UserPermission(
                    permission=code,
                    granted_by=identity.id,
                    granted_at=now,
                    expires_at=expires_at,
                ))
        db.commit()
        new = _perm_snapshot(u)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating permissions of user %s", user_id)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to update user permissions")

    _audit(db, identity, "UPDATE", user_id, old, new, "PERMISSIONS_UPDATE")
    return _reload(db, user_id)


def grant_permission(
    identity: Any,
    db: Session,
    user_id: str,
    permission: Any,
    expires_at: Optional[datetime] = None,
) -> ActionResult[UserOut]:
    """Add one grant, or refresh its expiry when it already exists."""
    denied = _gate(identity)
    if denied:
        return denied

    try:
        (code, ) = _validate_permissions([permission])
    except ValueError as e:
        return ActionResult.fail(ErrorKind.VALIDATION, str(e))

    try:
        u = _get(db, user_id)
        if not u:
            return ActionResult.not_found("User")
        old = _perm_snapshot(u)

        now = now_local()
        grant = next((g for g in u.permissions if g.permission == code), None)
        if grant:
            grant.expires_at = expires_at
            grant.granted_by = identity.id
            grant.granted_at = now
        else:
            u.permissions.append(
                UserPermission(
                    permission=code,
                    granted_by=identity.id,
                    granted_at=now,
                    expires_at=expires_at,
                ))
        db.commit()
        new = _perm_snapshot(u)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error granting %s to user %s", permission, user_id)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to grant permission")

    _audit(db, identity, "UPDATE", user_id, old, new, "PERMISSION_GRANT")
    return _reload(db, user_id)


def revoke_permission(identity: Any, db: Session, user_id: str,
                      permission: Any) -> ActionResult[UserOut]:
    denied = _gate(identity)
    if denied:
        return denied

    code = permission.value if isinstance(permission, Permission) else str(
        permission)

    try:
        u = _get(db, user_id)
        if not u:
            return ActionResult.not_found("User")
        grant = next((g for g in u.permissions if g.permission == code), None)
        if not grant:
            return ActionResult.not_found("Permission grant")
        old = _perm_snapshot(u)
        u.permissions.remove(grant)
        db.commit()
        new = _perm_snapshot(u)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error revoking %s from user %s", code, user_id)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to revoke permission")

    _audit(db, identity, "UPDATE", user_id, old, new, "PERMISSION_REVOKE")
    return _reload(db, user_id)


def reset_user_password(identity: Any, db: Session, user_id: str,
                        new_password: str) -> ActionResult[bool]:
    denied = _gate(identity)
    if denied:
        return denied
    if not new_password or len(new_password) < 8:
        return ActionResult.fail(
            ErrorKind.VALIDATION,
            "Password must be at least 8 characters")

    try:
        u = db.get(User, user_id)
        if not u:
            return ActionResult.not_found("User")
        u.password_hash = hash_password(new_password)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error resetting password of user %s", user_id)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to reset password")

    # the hash itself never goes into the audit trail
    _audit(db, identity, "UPDATE", user_id, {"password_changed": False},
           {"password_changed": True}, "PASSWORD_RESET")
    return ActionResult.ok(True)
