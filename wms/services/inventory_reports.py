# FILE: wms/services/inventory_reports.py
"""
Inventory report generator.

Every report renders its source rows (stock balances, movements or document
lines) as uniform `ReportRecord`s and adds a quantity/value summary.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Query, Session, contains_eager, joinedload, selectinload

from wms.core.rbac import require_any
from wms.models.documents import (
    ItemEntry,
    Transfer,
    TransferItem,
    Withdrawal,
    WithdrawalItem,
)
from wms.models.inventory import CurrentInventory, InventoryMovement, Item
from wms.models.permission import Permission
from wms.models.warehouse import Warehouse
from wms.schemas.common import ActionResult, ErrorKind
from wms.schemas.reports import (
    InventoryReport,
    InventoryReportFilters,
    InventoryReportSummary,
    ReportRecord,
)
from wms.services.dashboard_service import is_low_stock, safe_scalar, scope
from wms.services.reports_service import ReportDefinition
from wms.utils.timezone import now_local

logger = logging.getLogger(__name__)

# newest first, older movements are cut off
MOVEMENT_LIMIT = 1000

Records = List[ReportRecord]
ReportOutput = Tuple[Records, InventoryReportSummary]


def _summary(records: Records,
             total_quantity: Optional[float] = None,
             total_value: Optional[float] = None) -> InventoryReportSummary:
    if total_quantity is None:
        total_quantity = sum(r.quantity for r in records)
    if total_value is None:
        total_value = sum(r.total_value for r in records)
    n = len(records)
    return InventoryReportSummary(
        total_records=n,
        total_quantity=total_quantity,
        total_value=total_value,
        average_value=total_value / n if n else 0.0,
    )


# ---------- stock on hand ----------


def _stock_query(db: Session, filters: InventoryReportFilters) -> Query:
    q = (db.query(CurrentInventory)
         .join(CurrentInventory.item)
         .join(CurrentInventory.warehouse)
         .options(
             contains_eager(CurrentInventory.item).joinedload(Item.supplier),
             contains_eager(CurrentInventory.warehouse)))
    q = scope(q, filters, warehouse=[CurrentInventory.warehouse_id])
    if filters.supplier_id:
        q = q.filter(Item.supplier_id == filters.supplier_id)
    return q


def _stock_record(inv: CurrentInventory) -> ReportRecord:
    item = inv.item
    return ReportRecord(
        item_code=item.item_code,
        description=item.description,
        warehouse=inv.warehouse.name,
        supplier=item.supplier.name if item.supplier else None,
        quantity=safe_scalar(inv.quantity),
        unit_cost=safe_scalar(inv.avg_unit_cost),
        total_value=safe_scalar(inv.total_value),
    )


def _report_inventory_summary(db: Session, filters: InventoryReportFilters,
                              now: datetime) -> ReportOutput:
    q = _stock_query(db, filters)
    if not filters.include_zero_stock:
        q = q.filter(CurrentInventory.quantity > 0)
    records = [
        _stock_record(inv)
        for inv in q.order_by(Warehouse.name, Item.item_code)
    ]
    return records, _summary(records)


def _report_inventory_valuation(db: Session, filters: InventoryReportFilters,
                                now: datetime) -> ReportOutput:
    q = _stock_query(db, filters).order_by(CurrentInventory.total_value.desc(),
                                           Item.item_code)
    records = [_stock_record(inv) for inv in q]
    return records, _summary(records)


def _report_low_stock(db: Session, filters: InventoryReportFilters,
                      now: datetime) -> ReportOutput:
    q = _stock_query(db, filters).filter(Item.reorder_level.isnot(None))
    records = [
        _stock_record(inv)
        for inv in q.order_by(Warehouse.name, Item.item_code)
        if is_low_stock(inv.quantity, inv.item.reorder_level)
    ]
    return records, _summary(records)


# ---------- movements and documents ----------


def _report_stock_movement(db: Session, filters: InventoryReportFilters,
                           now: datetime) -> ReportOutput:
    q = db.query(InventoryMovement).options(
        joinedload(InventoryMovement.item),
        joinedload(InventoryMovement.warehouse))
    q = scope(q, filters, ts=InventoryMovement.created_at,
              warehouse=[InventoryMovement.warehouse_id])
    movements = (q.order_by(InventoryMovement.created_at.desc())
                 .limit(MOVEMENT_LIMIT).all())

    records = [
        ReportRecord(
            item_code=m.item.item_code,
            description=m.item.description,
            warehouse=m.warehouse.name,
            quantity=safe_scalar(m.quantity),
            unit_cost=safe_scalar(m.unit_cost),
            total_value=safe_scalar(m.total_value),
            occurred_at=m.created_at,
            reference=m.reference_id,
            status=m.movement_type.value,
            notes=m.notes,
        ) for m in movements
    ]
    # quantities are signed; the totals report the net magnitude
    return records, _summary(
        records,
        total_quantity=abs(sum(r.quantity for r in records)),
        total_value=abs(sum(r.total_value for r in records)),
    )


def _report_item_entries(db: Session, filters: InventoryReportFilters,
                         now: datetime) -> ReportOutput:
    q = db.query(ItemEntry).options(
        joinedload(ItemEntry.item),
        joinedload(ItemEntry.supplier),
        joinedload(ItemEntry.warehouse))
    q = scope(q, filters, ts=ItemEntry.entry_date,
              warehouse=[ItemEntry.warehouse_id])
    if filters.supplier_id:
        q = q.filter(ItemEntry.supplier_id == filters.supplier_id)

    records = [
        ReportRecord(
            item_code=e.item.item_code,
            description=e.item.description,
            warehouse=e.warehouse.name,
            supplier=e.supplier.name,
            quantity=safe_scalar(e.quantity),
            unit_cost=safe_scalar(e.landed_cost),
            total_value=safe_scalar(e.total_value),
            occurred_at=e.entry_date,
            reference=e.purchase_reference,
            notes=e.notes,
        ) for e in q.order_by(ItemEntry.entry_date.desc())
    ]
    return records, _summary(records)


def _report_transfers(db: Session, filters: InventoryReportFilters,
                      now: datetime) -> ReportOutput:
    q = db.query(Transfer).options(
        joinedload(Transfer.from_warehouse),
        joinedload(Transfer.to_warehouse),
        selectinload(Transfer.items).joinedload(TransferItem.item))
    q = scope(q, filters, ts=Transfer.transfer_date,
              warehouse=[Transfer.from_warehouse_id, Transfer.to_warehouse_id])

    records: Records = []
    for t in q.order_by(Transfer.transfer_date.desc()):
        route = f"{t.from_warehouse.name} → {t.to_warehouse.name}"
        for line in t.items:
            # a transfer moves stock without changing its value
            records.append(
                ReportRecord(
                    item_code=line.item.item_code,
                    description=line.item.description,
                    warehouse=route,
                    quantity=safe_scalar(line.quantity),
                    occurred_at=t.transfer_date,
                    reference=t.transfer_number,
                    status=t.status.value,
                    notes=t.notes,
                ))
    return records, _summary(records, total_value=0.0)


def _report_withdrawals(db: Session, filters: InventoryReportFilters,
                        now: datetime) -> ReportOutput:
    q = db.query(Withdrawal).options(
        joinedload(Withdrawal.warehouse),
        selectinload(Withdrawal.items).joinedload(WithdrawalItem.item))
    q = scope(q, filters, ts=Withdrawal.withdrawal_date,
              warehouse=[Withdrawal.warehouse_id])

    records: Records = []
    for w in q.order_by(Withdrawal.withdrawal_date.desc()):
        for line in w.items:
            records.append(
                ReportRecord(
                    item_code=line.item.item_code,
                    description=line.item.description,
                    warehouse=w.warehouse.name,
                    quantity=safe_scalar(line.quantity),
                    unit_cost=safe_scalar(line.unit_cost),
                    total_value=safe_scalar(line.total_value),
                    occurred_at=w.withdrawal_date,
                    reference=w.withdrawal_number,
                    status=w.status.value,
                    notes=w.purpose,
                ))
    return records, _summary(records)


def variance_type(amount: float) -> str:
    if amount > 0:
        return "UNFAVORABLE"
    if amount < 0:
        return "FAVORABLE"
    return "ON_STANDARD"


def _report_cost_analysis(db: Session, filters: InventoryReportFilters,
                          now: datetime) -> ReportOutput:
    """Landed cost of each receipt against the item's standard cost."""
    q = db.query(ItemEntry).options(
        joinedload(ItemEntry.item),
        joinedload(ItemEntry.warehouse))
    q = scope(q, filters, ts=ItemEntry.entry_date,
              warehouse=[ItemEntry.warehouse_id])

    records: Records = []
    for e in q.order_by(ItemEntry.entry_date.desc()):
        standard = safe_scalar(e.item.standard_cost)
        actual = safe_scalar(e.landed_cost)
        qty = safe_scalar(e.quantity)
        per_unit = actual - standard
        percent = per_unit / standard * 100 if standard else 0.0
        records.append(
            ReportRecord(
                item_code=e.item.item_code,
                description=e.item.description,
                warehouse=e.warehouse.name,
                quantity=qty,
                unit_cost=actual,
                total_value=per_unit * qty,
                occurred_at=e.entry_date,
                reference=e.purchase_reference,
                status=variance_type(per_unit),
                notes=f"Variance: {percent:.2f}%",
            ))
    # favorable and unfavorable variances do not cancel out
    return records, _summary(
        records, total_value=sum(abs(r.total_value) for r in records))


INVENTORY_REPORT_DEFINITIONS: Dict[str, ReportDefinition] = {
    d.code: d
    for d in (
        ReportDefinition(
            code="INVENTORY_SUMMARY",
            title="Inventory Summary Report",
            subtitle="Current stock levels and values by warehouse",
            run_fn=_report_inventory_summary,
        ),
        ReportDefinition(
            code="INVENTORY_VALUATION",
            title="Inventory Valuation Report",
            subtitle="Detailed inventory valuation by cost method",
            run_fn=_report_inventory_valuation,
        ),
        ReportDefinition(
            code="STOCK_MOVEMENT",
            title="Stock Movement Report",
            subtitle="All inventory movements within specified period",
            run_fn=_report_stock_movement,
        ),
        ReportDefinition(
            code="LOW_STOCK_REPORT",
            title="Low Stock Report",
            subtitle="Items below reorder levels requiring attention",
            run_fn=_report_low_stock,
        ),
        ReportDefinition(
            code="ITEM_ENTRY_REPORT",
            title="Item Entry Report",
            subtitle="All item entries within specified period",
            run_fn=_report_item_entries,
        ),
        ReportDefinition(
            code="TRANSFER_REPORT",
            title="Transfer Report",
            subtitle="Inter-warehouse transfers within specified period",
            run_fn=_report_transfers,
        ),
        ReportDefinition(
            code="WITHDRAWAL_REPORT",
            title="Withdrawal Report",
            subtitle="Material withdrawals and issuances within specified period",
            run_fn=_report_withdrawals,
        ),
        ReportDefinition(
            code="COST_ANALYSIS",
            title="Cost Analysis Report",
            subtitle="Cost variances and analysis within specified period",
            run_fn=_report_cost_analysis,
        ),
    )
}


def generate_inventory_report(
    identity: Any,
    db: Session,
    filters: InventoryReportFilters,
    now: Optional[datetime] = None,
) -> ActionResult[InventoryReport]:
    if not identity:
        return ActionResult.unauthorized()
    denied = require_any(identity, [Permission.VIEW_REPORTS])
    if denied:
        return denied

    defn = INVENTORY_REPORT_DEFINITIONS.get((filters.report_type or "").upper())
    if not defn:
        return ActionResult.fail(ErrorKind.VALIDATION, "Invalid report type")

    now = now or now_local()
    try:
        records, summary = defn.run_fn(db, filters, now)
    except Exception:
        logger.exception("Error generating inventory report %s", defn.code)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to generate report")

    return ActionResult.ok(
        InventoryReport(
            title=defn.title,
            subtitle=defn.subtitle,
            generated_at=now,
            filters=filters,
            summary=summary,
            records=records,
        ))
