# FILE: wms/api/routes_audit_logs.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wms.api.deps import current_identity, get_db
from wms.schemas.audit import AuditLogFilters
from wms.schemas.session import SessionUser
from wms.services.audit_service import list_audit_logs
from wms.utils.resp import result_response

router = APIRouter()


@router.get("")
def audit_logs(
        search: Optional[str] = Query(
            None,
            description="Matches table name, reference number, notes, transaction type"),
        action: Optional[str] = Query(
            None, description="Filter by action type (CREATE/UPDATE/DELETE)"),
        table_name: Optional[str] = Query(None),
        user_id: Optional[str] = Query(
            None, description="User who performed the action"),
        date_from: Optional[date] = Query(None),
        date_to: Optional[date] = Query(None),
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    """
    GET /api/audit-logs

    Example:
      /api/audit-logs?table_name=users&action=UPDATE&limit=30
    """
    filters = AuditLogFilters(
        search=search,
        action=action,
        table_name=table_name,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return result_response(list_audit_logs(me, db, filters))
