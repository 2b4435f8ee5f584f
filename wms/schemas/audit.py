# FILE: wms/schemas/audit.py
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditLogFilters(BaseModel):
    search: Optional[str] = None
    action: Optional[str] = None  # CREATE / UPDATE / DELETE
    table_name: Optional[str] = None
    user_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    limit: int = Field(50, ge=1, le=500)
    offset: int = Field(0, ge=0)


class AuditLogOut(BaseModel):
    id: str
    user_id: Optional[str]
    user_email: Optional[str] = None
    action: str
    table_name: str
    record_id: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    changed_fields: Optional[List[str]] = None
    transaction_type: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogPage(BaseModel):
    total: int
    items: List[AuditLogOut]
