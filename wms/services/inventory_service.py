# FILE: wms/services/inventory_service.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from wms.core.rbac import require_any
from wms.models.inventory import CurrentInventory, Item
from wms.models.permission import Permission
from wms.models.warehouse import Supplier, Warehouse
from wms.schemas.common import ActionResult, ErrorKind
from wms.schemas.inventory import (
    CurrentInventoryOut,
    InventoryFilters,
    InventoryRow,
    InventoryStatsOut,
)
from wms.services.dashboard_service import is_low_stock, safe_scalar

logger = logging.getLogger(__name__)


def _apply_filters(q, filters: InventoryFilters):
    if filters.warehouse_id:
        q = q.filter(CurrentInventory.warehouse_id == filters.warehouse_id)
    if filters.supplier_id:
        q = q.filter(Item.supplier_id == filters.supplier_id)

    search = (filters.search or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(
            or_(
                Item.item_code.ilike(like),
                Item.description.ilike(like),
                Supplier.name.ilike(like),
            ))
    return q


def get_current_inventory(
        identity: Any, db: Session,
        filters: InventoryFilters) -> ActionResult[CurrentInventoryOut]:
    """
    Stock on hand (quantity > 0), optionally narrowed to low-stock rows.
    Low stock uses the same rule as the dashboard.
    """
    if not identity:
        return ActionResult.unauthorized()
    denied = require_any(identity, [Permission.VIEW_INVENTORY])
    if denied:
        return denied

    base = (db.query(CurrentInventory, Item, Warehouse, Supplier).join(
        Item, CurrentInventory.item_id == Item.id).join(
            Warehouse, CurrentInventory.warehouse_id == Warehouse.id).outerjoin(
                Supplier, Item.supplier_id == Supplier.id))
    base = _apply_filters(base, filters)

    try:
        found = (base.filter(CurrentInventory.quantity > 0).order_by(
            Item.item_code, Warehouse.name).all())
        out_of_stock = int(
            _apply_filters(
                db.query(func.count(CurrentInventory.id)).join(
                    Item, CurrentInventory.item_id == Item.id).outerjoin(
                        Supplier, Item.supplier_id == Supplier.id),
                filters).filter(CurrentInventory.quantity <= 0).scalar() or 0)
    except Exception:
        logger.exception("Error fetching current inventory")
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to fetch current inventory")

    rows = []
    for inv, item, wh, sup in found:
        low = is_low_stock(inv.quantity, item.reorder_level)
        if filters.low_stock and not low:
            continue
        rows.append(
            InventoryRow(
                id=inv.id,
                item_id=item.id,
                item_code=item.item_code,
                description=item.description,
                unit_of_measure=item.unit_of_measure,
                supplier_name=sup.name if sup else None,
                warehouse_id=wh.id,
                warehouse_name=wh.name,
                quantity=safe_scalar(inv.quantity),
                avg_unit_cost=safe_scalar(inv.avg_unit_cost),
                total_value=safe_scalar(inv.total_value),
                reorder_level=(float(item.reorder_level)
                               if item.reorder_level is not None else None),
                is_low_stock=low,
                last_updated=inv.last_updated,
            ))

    total_value = sum(r.total_value for r in rows)
    stats = InventoryStatsOut(
        total_items=len(rows),
        total_value=total_value,
        low_stock_items=sum(1 for r in rows if r.is_low_stock),
        out_of_stock_items=out_of_stock,
        average_value=total_value / len(rows) if rows else 0,
        warehouse_count=len({r.warehouse_id for r in rows}),
    )
    return ActionResult.ok(CurrentInventoryOut(rows=rows, stats=stats))
