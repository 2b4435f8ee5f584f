# wms/api/routes_users.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from wms.api.deps import current_identity, get_db
from wms.models.permission import Permission
from wms.schemas.session import SessionUser
from wms.schemas.user import (
    PasswordReset,
    PermissionGrantIn,
    PermissionsSet,
    UserCreate,
    UserUpdate,
)
from wms.services import user_service
from wms.utils.resp import result_response

router = APIRouter()


@router.get("")
def list_users(
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(user_service.list_users(me, db))


@router.post("")
def create_user(
        payload: UserCreate,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(user_service.create_user(me, db, payload),
                           status_code=201)


@router.get("/{user_id}")
def get_user(
        user_id: str,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(user_service.get_user(me, db, user_id))


@router.put("/{user_id}")
def update_user(
        user_id: str,
        payload: UserUpdate,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(user_service.update_user(me, db, user_id, payload))


@router.post("/{user_id}/deactivate")
def deactivate_user(
        user_id: str,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(user_service.deactivate_user(me, db, user_id))


@router.put("/{user_id}/permissions")
def set_permissions(
        user_id: str,
        payload: PermissionsSet,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(
        user_service.set_user_permissions(me, db, user_id,
                                          payload.permissions,
                                          payload.expires_at))


@router.post("/{user_id}/permissions/{permission}")
def grant_permission(
        user_id: str,
        permission: Permission,
        payload: Optional[PermissionGrantIn] = Body(None),
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    expires_at = payload.expires_at if payload else None
    return result_response(
        user_service.grant_permission(me, db, user_id, permission,
                                      expires_at))


@router.delete("/{user_id}/permissions/{permission}")
def revoke_permission(
        user_id: str,
        permission: Permission,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(
        user_service.revoke_permission(me, db, user_id, permission))


@router.post("/{user_id}/reset-password")
def reset_password(
        user_id: str,
        payload: PasswordReset,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(
        user_service.reset_user_password(me, db, user_id,
                                         payload.new_password))
