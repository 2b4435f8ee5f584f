# FILE: wms/schemas/reports.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from wms.schemas.dashboard import StatsFilters


class InventorySummary(BaseModel):
    total_items: int = 0
    total_value: float = 0
    low_stock_items: int = 0
    out_of_stock_items: int = 0


class PurchaseSummary(BaseModel):
    monthly_count: int = 0
    monthly_value: float = 0
    total_count: int = 0
    total_value: float = 0


class TransferSummary(BaseModel):
    active_transfers: int = 0
    monthly_count: int = 0
    total_count: int = 0


class WithdrawalSummary(BaseModel):
    monthly_count: int = 0
    monthly_value: float = 0
    total_count: int = 0
    total_value: float = 0


class ReportsData(BaseModel):
    inventory_summary: InventorySummary
    purchase_summary: PurchaseSummary
    transfer_summary: TransferSummary
    withdrawal_summary: WithdrawalSummary


class OperationalReportFilters(BaseModel):
    report_type: str
    warehouse_id: Optional[str] = None  # None = all
    supplier_id: Optional[str] = None  # None = all
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class OperationalReportSummary(BaseModel):
    total_records: int = 0
    total_value: float = 0
    average_value: float = 0
    additional_metrics: Dict[str, float] = Field(default_factory=dict)


class OperationalReport(BaseModel):
    title: str
    subtitle: str
    generated_at: datetime
    filters: OperationalReportFilters
    summary: OperationalReportSummary
    records: List[Dict[str, Any]] = Field(default_factory=list)


# ---------- Inventory report generator ----------


class InventoryReportFilters(StatsFilters):
    report_type: str
    supplier_id: Optional[str] = None  # None = all
    # INVENTORY_SUMMARY only; other reports list what they find
    include_zero_stock: bool = False


class ReportRecord(BaseModel):
    item_code: str
    description: str
    warehouse: str
    supplier: Optional[str] = None
    quantity: float = 0
    unit_cost: float = 0
    total_value: float = 0
    occurred_at: Optional[datetime] = None
    reference: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class InventoryReportSummary(BaseModel):
    total_records: int = 0
    total_quantity: float = 0
    total_value: float = 0
    average_value: float = 0


class InventoryReport(BaseModel):
    title: str
    subtitle: str
    generated_at: datetime
    filters: InventoryReportFilters
    summary: InventoryReportSummary
    records: List[ReportRecord] = Field(default_factory=list)
