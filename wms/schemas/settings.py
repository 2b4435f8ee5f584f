# FILE: wms/schemas/settings.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

CostingMethod = Literal["FIFO", "LIFO", "WEIGHTED_AVERAGE", "MOVING_AVERAGE"]
BackupFrequency = Literal["HOURLY", "DAILY", "WEEKLY", "MONTHLY"]


class SystemSettings(BaseModel):
    default_costing_method: CostingMethod = "WEIGHTED_AVERAGE"
    auto_approval_threshold: float = Field(0, ge=0)
    low_stock_notifications: bool = True
    email_notifications: bool = True
    audit_log_retention_days: int = Field(365, ge=1)
    backup_frequency: BackupFrequency = "DAILY"
    maintenance_mode: bool = False
    system_name: str = "Warehouse Management System"
    system_version: str = "1.0.0"


class SystemSettingsUpdate(BaseModel):
    """Partial update; unset fields keep their stored value."""
    default_costing_method: Optional[CostingMethod] = None
    auto_approval_threshold: Optional[float] = Field(None, ge=0)
    low_stock_notifications: Optional[bool] = None
    email_notifications: Optional[bool] = None
    audit_log_retention_days: Optional[int] = Field(None, ge=1)
    backup_frequency: Optional[BackupFrequency] = None
    maintenance_mode: Optional[bool] = None
    system_name: Optional[str] = Field(None, min_length=1)
