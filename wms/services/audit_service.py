# FILE: wms/services/audit_service.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from wms.core.rbac import require_any
from wms.models.audit import AuditLog
from wms.models.permission import Permission
from wms.schemas.audit import AuditLogFilters, AuditLogOut, AuditLogPage
from wms.schemas.common import ActionResult, ErrorKind
from wms.services.dashboard_service import dt_range

logger = logging.getLogger(__name__)


def list_audit_logs(identity: Any, db: Session,
                    filters: AuditLogFilters) -> ActionResult[AuditLogPage]:
    if not identity:
        return ActionResult.unauthorized()
    denied = require_any(identity, [Permission.VIEW_AUDIT_LOGS])
    if denied:
        return denied

    qry = db.query(AuditLog)

    search = (filters.search or "").strip()
    if search:
        like = f"%{search}%"
        qry = qry.filter(
            or_(
                AuditLog.table_name.ilike(like),
                AuditLog.reference_number.ilike(like),
                AuditLog.notes.ilike(like),
                AuditLog.transaction_type.ilike(like),
            ))

    if filters.action:
        qry = qry.filter(AuditLog.action == filters.action.upper())

    if filters.table_name:
        qry = qry.filter(AuditLog.table_name == filters.table_name)

    if filters.user_id:
        qry = qry.filter(AuditLog.user_id == filters.user_id)

    start_dt, end_dt = dt_range(filters.date_from, filters.date_to)
    if start_dt:
        qry = qry.filter(AuditLog.timestamp >= start_dt)
    if end_dt:
        qry = qry.filter(AuditLog.timestamp < end_dt)

    try:
        total = qry.count()
        logs = (qry.order_by(AuditLog.timestamp.desc()).offset(
            filters.offset).limit(filters.limit).all())
    except Exception:
        logger.exception("Error fetching audit logs")
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to fetch audit logs")

    return ActionResult.ok(
        AuditLogPage(
            total=total,
            items=[AuditLogOut.model_validate(l) for l in logs],
        ))
