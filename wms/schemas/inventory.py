# FILE: wms/schemas/inventory.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class InventoryFilters(BaseModel):
    search: Optional[str] = None
    warehouse_id: Optional[str] = None
    supplier_id: Optional[str] = None
    low_stock: bool = False


class InventoryRow(BaseModel):
    id: str
    item_id: str
    item_code: str
    description: str
    unit_of_measure: str
    supplier_name: Optional[str] = None
    warehouse_id: str
    warehouse_name: str
    quantity: float
    avg_unit_cost: float
    total_value: float
    reorder_level: Optional[float] = None
    is_low_stock: bool
    last_updated: datetime


class InventoryStatsOut(BaseModel):
    total_items: int = 0
    total_value: float = 0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    average_value: float = 0
    warehouse_count: int = 0


class CurrentInventoryOut(BaseModel):
    rows: List[InventoryRow]
    stats: InventoryStatsOut
