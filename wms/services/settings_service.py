# FILE: wms/services/settings_service.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from wms.core.rbac import require_any
from wms.models.permission import Permission
from wms.models.settings import SystemSetting
from wms.schemas.common import ActionResult, ErrorKind
from wms.schemas.settings import SystemSettings, SystemSettingsUpdate
from wms.services.audit_logger import log_audit

logger = logging.getLogger(__name__)


class SettingsRepository(ABC):
    """Where system settings live. Callers never hold settings in globals."""

    @abstractmethod
    def load(self) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def save(self,
             data: Dict[str, Any],
             updated_by: Optional[str] = None) -> None:
        ...


class SqlSettingsRepository(SettingsRepository):
    KEY = "system"

    def __init__(self, db: Session):
        self.db = db

    def load(self) -> Optional[Dict[str, Any]]:
        row = self.db.get(SystemSetting, self.KEY)
        return dict(row.value) if row else None

    def save(self,
             data: Dict[str, Any],
             updated_by: Optional[str] = None) -> None:
        row = self.db.get(SystemSetting, self.KEY)
        if row:
            row.value = dict(data)
            row.updated_by_id = updated_by
        else:
            self.db.add(
                SystemSetting(key=self.KEY,
                              value=dict(data),
                              updated_by_id=updated_by))
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


def _current(repo: SettingsRepository) -> SystemSettings:
    # stored keys override defaults; unknown keys are ignored
    return SystemSettings.model_validate(repo.load() or {})


def get_system_settings(identity: Any,
                        repo: SettingsRepository) -> ActionResult[SystemSettings]:
    if not identity:
        return ActionResult.unauthorized()
    try:
        return ActionResult.ok(_current(repo))
    except Exception:
        logger.exception("Error fetching system settings")
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to fetch system settings")


def update_system_settings(
    identity: Any,
    repo: SettingsRepository,
    data: SystemSettingsUpdate,
    db: Optional[Session] = None,
) -> ActionResult[SystemSettings]:
    if not identity:
        return ActionResult.unauthorized()
    denied = require_any(identity, [Permission.SYSTEM_SETTINGS])
    if denied:
        return denied

    try:
        before = _current(repo)
        after = SystemSettings.model_validate({
            **before.model_dump(),
            **data.model_dump(exclude_unset=True, exclude_none=True),
        })
        repo.save(after.model_dump(), updated_by=identity.id)
    except Exception:
        logger.exception("Error updating system settings")
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to update system settings")

    if db is not None:
        log_audit(
            db,
            user_id=identity.id,
            user_email=identity.email,
            action="UPDATE",
            table_name="system_settings",
            record_id=SqlSettingsRepository.KEY,
            old_values=before.model_dump(),
            new_values=after.model_dump(),
            transaction_type="SYSTEM_SETTINGS",
        )

    return ActionResult.ok(after)
