import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from wms.models.audit import AuditLog

logger = logging.getLogger(__name__)


def changed_fields(old_values: Optional[Dict[str, Any]],
                   new_values: Optional[Dict[str, Any]]) -> List[str]:
    old_values = old_values or {}
    new_values = new_values or {}
    keys = set(old_values) | set(new_values)
    return sorted(k for k in keys if old_values.get(k) != new_values.get(k))


def log_audit(
    db: Session,
    *,
    user_id: Optional[str],
    action: str,  # "CREATE" | "UPDATE" | "DELETE"
    table_name: str,
    record_id: Any,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    user_email: Optional[str] = None,
    transaction_type: Optional[str] = None,
    reference_number: Optional[str] = None,
    notes: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    """
    Persist one audit event. Never raises: a failed audit write is logged
    and rolled back, the caller's own change is already committed.
    """
    try:
        log = AuditLog(
            user_id=user_id,
            user_email=user_email,
            action=action,
            table_name=table_name,
            record_id=str(record_id),
            old_values=old_values,
            new_values=new_values,
            changed_fields=changed_fields(old_values, new_values),
            transaction_type=transaction_type,
            reference_number=reference_number,
            notes=notes,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(log)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to log audit for %s/%s", table_name,
                         record_id)
