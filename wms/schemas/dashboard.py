# FILE: wms/schemas/dashboard.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class StatsFilters(BaseModel):
    """
    Optional scoping for the aggregator.
    Dates are inclusive (converted to [start, end) in the service).
    """
    warehouse_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


ActivityType = Literal["ITEM_ENTRY", "TRANSFER", "WITHDRAWAL", "ADJUSTMENT"]


class RecentActivity(BaseModel):
    id: str
    type: ActivityType
    title: str
    description: str
    timestamp: datetime
    status: str


class InventoryStats(BaseModel):
    total_items: int = 0
    total_value: float = 0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    warehouse_count: int = 0


class ItemEntryStats(BaseModel):
    total_entries: int = 0
    total_value: float = 0
    this_month_entries: int = 0
    this_month_value: float = 0


class PurchaseStats(BaseModel):
    total_purchases: int = 0
    pending_purchases: int = 0
    total_value: float = 0
    this_month_purchases: int = 0


class TransferStats(BaseModel):
    total_transfers: int = 0
    pending_transfers: int = 0
    in_transit_transfers: int = 0
    this_month_transfers: int = 0


class WithdrawalStats(BaseModel):
    total_withdrawals: int = 0
    pending_withdrawals: int = 0
    approved_withdrawals: int = 0
    this_month_withdrawals: int = 0


class DashboardStats(BaseModel):
    inventory: InventoryStats
    item_entries: ItemEntryStats
    purchases: PurchaseStats
    transfers: TransferStats
    withdrawals: WithdrawalStats
    recent_activity: List[RecentActivity] = Field(default_factory=list)
