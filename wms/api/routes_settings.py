# FILE: wms/api/routes_settings.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wms.api.deps import current_identity, get_db
from wms.schemas.session import SessionUser
from wms.schemas.settings import SystemSettingsUpdate
from wms.services.settings_service import (
    SqlSettingsRepository,
    get_system_settings,
    update_system_settings,
)
from wms.utils.resp import result_response

router = APIRouter()


@router.get("")
def read_settings(
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(get_system_settings(me, SqlSettingsRepository(db)))


@router.put("")
def write_settings(
        payload: SystemSettingsUpdate,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    return result_response(
        update_system_settings(me, SqlSettingsRepository(db), payload, db))
