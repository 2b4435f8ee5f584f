# FILE: wms/services/reports_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, sessionmaker

from wms.core.rbac import require_any
from wms.db.parallel import gather_reads
from wms.models.documents import (
    ItemEntry,
    Purchase,
    Transfer,
    TransferStatus,
    Withdrawal,
    WithdrawalItem,
)
from wms.models.inventory import (
    CurrentInventory,
    InventoryMovement,
    Item,
    MovementType,
)
from wms.models.permission import Permission
from wms.models.warehouse import Supplier, Warehouse
from wms.schemas.common import ActionResult, ErrorKind
from wms.schemas.dashboard import StatsFilters
from wms.schemas.reports import (
    InventorySummary,
    OperationalReport,
    OperationalReportFilters,
    OperationalReportSummary,
    PurchaseSummary,
    ReportsData,
    TransferSummary,
    WithdrawalSummary,
)
from wms.services.dashboard_service import (
    between,
    count_low_stock,
    count_rows,
    dt_range,
    low_stock_rows,
    month_window,
    safe_scalar,
    scope,
    sum_rows,
)
from wms.utils.timezone import now_local

logger = logging.getLogger(__name__)

ACTIVE_TRANSFER_STATUSES = (TransferStatus.PENDING, TransferStatus.IN_TRANSIT)

# ---------- Summary (parallel) ----------


def _summary_reads(filters: StatsFilters,
                   now: datetime) -> Dict[str, Callable[[Session], Any]]:
    month = month_window(now)
    f = filters
    inv_wh = [CurrentInventory.warehouse_id]

    def purchases(db: Session, col):
        return scope(db.query(col), f, ts=Purchase.created_at,
                     warehouse=[Purchase.warehouse_id])

    def transfers(db: Session):
        return scope(db.query(func.count(Transfer.id)), f,
                     ts=Transfer.created_at,
                     warehouse=[Transfer.from_warehouse_id,
                                Transfer.to_warehouse_id])

    def withdrawals(db: Session):
        return scope(db.query(func.count(Withdrawal.id)), f,
                     ts=Withdrawal.created_at,
                     warehouse=[Withdrawal.warehouse_id])

    def withdrawal_value(db: Session):
        q = db.query(func.sum(WithdrawalItem.total_value)).join(
            Withdrawal, WithdrawalItem.withdrawal_id == Withdrawal.id)
        return scope(q, f, ts=Withdrawal.created_at,
                     warehouse=[Withdrawal.warehouse_id])

    return {
        "inv_total_items": lambda db: count_rows(
            scope(db.query(func.count(CurrentInventory.id)), f,
                  warehouse=inv_wh)),
        "inv_total_value": lambda db: sum_rows(
            scope(db.query(func.sum(CurrentInventory.total_value)), f,
                  warehouse=inv_wh)),
        "inv_out_of_stock": lambda db: count_rows(
            scope(db.query(func.count(CurrentInventory.id)), f,
                  warehouse=inv_wh).filter(CurrentInventory.quantity == 0)),
        "inv_low_stock_rows": lambda db: low_stock_rows(db, f),
        "purchases_total": lambda db: count_rows(
            purchases(db, func.count(Purchase.id))),
        "purchases_value": lambda db: sum_rows(
            purchases(db, func.sum(Purchase.total_cost))),
        "purchases_month": lambda db: count_rows(
            between(purchases(db, func.count(Purchase.id)),
                    Purchase.created_at, month)),
        "purchases_month_value": lambda db: sum_rows(
            between(purchases(db, func.sum(Purchase.total_cost)),
                    Purchase.created_at, month)),
        "transfers_total": lambda db: count_rows(transfers(db)),
        "transfers_active": lambda db: count_rows(
            transfers(db).filter(
                Transfer.status.in_(ACTIVE_TRANSFER_STATUSES))),
        "transfers_month": lambda db: count_rows(
            between(transfers(db), Transfer.created_at, month)),
        "withdrawals_total": lambda db: count_rows(withdrawals(db)),
        "withdrawals_value": lambda db: sum_rows(withdrawal_value(db)),
        "withdrawals_month": lambda db: count_rows(
            between(withdrawals(db), Withdrawal.created_at, month)),
        "withdrawals_month_value": lambda db: sum_rows(
            between(withdrawal_value(db), Withdrawal.created_at, month)),
    }


async def get_reports_data(
    identity: Any,
    session_factory: sessionmaker,
    filters: Optional[StatsFilters] = None,
    now: Optional[datetime] = None,
) -> ActionResult[ReportsData]:
    if not identity:
        return ActionResult.unauthorized()
    denied = require_any(identity, [Permission.VIEW_REPORTS])
    if denied:
        return denied

    filters = filters or StatsFilters()
    now = now or now_local()

    try:
        r = await gather_reads(session_factory, _summary_reads(filters, now))
    except Exception:
        logger.exception("Error fetching reports data")
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to fetch reports data")

    return ActionResult.ok(
        ReportsData(
            inventory_summary=InventorySummary(
                total_items=r["inv_total_items"],
                total_value=r["inv_total_value"],
                low_stock_items=count_low_stock(r["inv_low_stock_rows"]),
                out_of_stock_items=r["inv_out_of_stock"],
            ),
            purchase_summary=PurchaseSummary(
                monthly_count=r["purchases_month"],
                monthly_value=r["purchases_month_value"],
                total_count=r["purchases_total"],
                total_value=r["purchases_value"],
            ),
            transfer_summary=TransferSummary(
                active_transfers=r["transfers_active"],
                monthly_count=r["transfers_month"],
                total_count=r["transfers_total"],
            ),
            withdrawal_summary=WithdrawalSummary(
                monthly_count=r["withdrawals_month"],
                monthly_value=r["withdrawals_month_value"],
                total_count=r["withdrawals_total"],
                total_value=r["withdrawals_value"],
            ),
        ))


# ---------- Operational reports ----------

ReportRows = List[Dict[str, Any]]


@dataclass
class ReportDefinition:
    code: str
    title: str
    subtitle: str
    # (db, filters, now) -> (records, summary)
    run_fn: Callable[[Session, Any, datetime], Tuple[List[Any], Any]]


def _avg(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _grouped_count(db: Session, col) -> Dict[Any, int]:
    return {k: int(n) for k, n in db.query(col, func.count()).group_by(col)}


def _report_warehouse_efficiency(
        db: Session, filters: OperationalReportFilters,
        now: datetime) -> Tuple[ReportRows, OperationalReportSummary]:
    q = db.query(Warehouse)
    if filters.warehouse_id:
        q = q.filter(Warehouse.id == filters.warehouse_id)
    warehouses = q.order_by(Warehouse.name).all()

    inv = {
        wid: (int(n), safe_scalar(v), safe_scalar(qty))
        for wid, n, v, qty in db.query(
            CurrentInventory.warehouse_id,
            func.count(CurrentInventory.id),
            func.sum(CurrentInventory.total_value),
            func.sum(CurrentInventory.quantity),
        ).group_by(CurrentInventory.warehouse_id)
    }
    movements = _grouped_count(db, InventoryMovement.warehouse_id)
    entries = _grouped_count(db, ItemEntry.warehouse_id)
    transfers_out = _grouped_count(db, Transfer.from_warehouse_id)
    transfers_in = _grouped_count(db, Transfer.to_warehouse_id)
    withdrawals = _grouped_count(db, Withdrawal.warehouse_id)

    records: ReportRows = []
    for w in warehouses:
        n_items, value, qty = inv.get(w.id, (0, 0.0, 0.0))
        n_moves = movements.get(w.id, 0)
        n_transfers = transfers_out.get(w.id, 0) + transfers_in.get(w.id, 0)
        records.append({
            "warehouse_name": w.name,
            "location": w.location or "N/A",
            "total_items": n_items,
            "total_value": value,
            "total_quantity": qty,
            "total_movements": n_moves,
            "total_entries": entries.get(w.id, 0),
            "total_transfers": n_transfers,
            "total_withdrawals": withdrawals.get(w.id, 0),
            "efficiency_score":
            round(n_transfers / n_moves * 100) if n_moves else 0,
        })

    values = [r["total_value"] for r in records]
    return records, OperationalReportSummary(
        total_records=len(records),
        total_value=sum(values),
        average_value=_avg(values),
        additional_metrics={
            "total_movements":
            float(sum(r["total_movements"] for r in records)),
            "average_efficiency":
            _avg([r["efficiency_score"] for r in records]),
        },
    )


def _report_supplier_performance(
        db: Session, filters: OperationalReportFilters,
        now: datetime) -> Tuple[ReportRows, OperationalReportSummary]:
    q = db.query(Supplier)
    if filters.supplier_id:
        q = q.filter(Supplier.id == filters.supplier_id)
    suppliers = q.order_by(Supplier.name).all()

    item_counts = _grouped_count(db, Item.supplier_id)

    eq = db.query(ItemEntry)
    start, end = dt_range(filters.date_from, filters.date_to)
    if start:
        eq = eq.filter(ItemEntry.entry_date >= start)
    if end:
        eq = eq.filter(ItemEntry.entry_date < end)
    by_supplier: Dict[str, List[ItemEntry]] = {}
    for e in eq.all():
        by_supplier.setdefault(e.supplier_id, []).append(e)

    records: ReportRows = []
    for s in suppliers:
        rows = by_supplier.get(s.id, [])
        n = len(rows)
        last = max((e.entry_date for e in rows), default=None)
        records.append({
            "supplier_name": s.name,
            "contact_info": s.contact_info or "N/A",
            "total_items": item_counts.get(s.id, 0),
            "total_entries": n,
            "total_value": sum(safe_scalar(e.total_value) for e in rows),
            "total_quantity": sum(safe_scalar(e.quantity) for e in rows),
            "average_cost": _avg([safe_scalar(e.landed_cost) for e in rows]),
            "last_entry_date": last.date().isoformat() if last else "N/A",
            # 30 deliveries in the period scores 100
            "performance_score": min(100, round(n / 30 * 100)) if n else 0,
        })

    values = [r["total_value"] for r in records]
    return records, OperationalReportSummary(
        total_records=len(records),
        total_value=sum(values),
        average_value=_avg(values),
        additional_metrics={
            "total_entries": float(sum(r["total_entries"] for r in records)),
            "average_performance":
            _avg([r["performance_score"] for r in records]),
        },
    )


def _report_inventory_turnover(
        db: Session, filters: OperationalReportFilters,
        now: datetime) -> Tuple[ReportRows, OperationalReportSummary]:
    q = db.query(CurrentInventory).options(
        joinedload(CurrentInventory.item),
        joinedload(CurrentInventory.warehouse))
    if filters.warehouse_id:
        q = q.filter(CurrentInventory.warehouse_id == filters.warehouse_id)
    inventory = q.all()

    mq = db.query(
        InventoryMovement.item_id,
        InventoryMovement.warehouse_id,
        func.sum(InventoryMovement.quantity),
    ).filter(
        InventoryMovement.movement_type.in_(
            [MovementType.WITHDRAWAL, MovementType.TRANSFER_OUT]))
    if filters.warehouse_id:
        mq = mq.filter(InventoryMovement.warehouse_id == filters.warehouse_id)
    start, end = dt_range(filters.date_from, filters.date_to)
    if start:
        mq = mq.filter(InventoryMovement.created_at >= start)
    if end:
        mq = mq.filter(InventoryMovement.created_at < end)
    outbound = {
        (item_id, wid): abs(safe_scalar(qty))
        for item_id, wid, qty in mq.group_by(InventoryMovement.item_id,
                                             InventoryMovement.warehouse_id)
    }

    records: ReportRows = []
    for inv in inventory:
        out_qty = outbound.get((inv.item_id, inv.warehouse_id), 0.0)
        current = safe_scalar(inv.quantity)
        average = (current + out_qty) / 2
        ratio = out_qty / average if average > 0 else 0.0
        records.append({
            "item_code": inv.item.item_code,
            "description": inv.item.description,
            "warehouse": inv.warehouse.name,
            "current_quantity": current,
            "outbound_quantity": out_qty,
            "average_inventory": average,
            "turnover_ratio": round(ratio, 2),
            "days_on_hand": round(365 / ratio) if ratio > 0 else 365,
            "current_value": safe_scalar(inv.total_value),
            "standard_cost": safe_scalar(inv.item.standard_cost),
        })

    values = [r["current_value"] for r in records]
    return records, OperationalReportSummary(
        total_records=len(records),
        total_value=sum(values),
        average_value=_avg(values),
        additional_metrics={
            "average_turnover": _avg([r["turnover_ratio"] for r in records]),
            "average_days_on_hand":
            _avg([r["days_on_hand"] for r in records]),
        },
    )


def _report_operational_summary(
        db: Session, filters: OperationalReportFilters,
        now: datetime) -> Tuple[ReportRows, OperationalReportSummary]:
    month = month_window(now)

    total_items = count_rows(db.query(func.count(CurrentInventory.id)))
    total_value = sum_rows(db.query(func.sum(CurrentInventory.total_value)))
    monthly_entries = count_rows(
        between(db.query(func.count(ItemEntry.id)), ItemEntry.entry_date,
                month))
    monthly_transfers = count_rows(
        between(db.query(func.count(Transfer.id)), Transfer.created_at,
                month))
    monthly_withdrawals = count_rows(
        between(db.query(func.count(Withdrawal.id)), Withdrawal.created_at,
                month))
    active_warehouses = count_rows(
        db.query(func.count(Warehouse.id)).filter(Warehouse.is_active.is_(True)))
    active_suppliers = count_rows(
        db.query(func.count(Supplier.id)).filter(Supplier.is_active.is_(True)))

    def metric(name: str, value: float, category: str, period: str):
        return {"metric": name, "value": value, "category": category,
                "period": period}

    records = [
        metric("Total Inventory Items", total_items, "Inventory", "Current"),
        metric("Total Inventory Value", total_value, "Inventory", "Current"),
        metric("Monthly Item Entries", monthly_entries, "Operations",
               "This Month"),
        metric("Monthly Transfers", monthly_transfers, "Operations",
               "This Month"),
        metric("Monthly Withdrawals", monthly_withdrawals, "Operations",
               "This Month"),
        metric("Active Warehouses", active_warehouses, "Infrastructure",
               "Current"),
        metric("Active Suppliers", active_suppliers, "Infrastructure",
               "Current"),
    ]

    return records, OperationalReportSummary(
        total_records=len(records),
        total_value=total_value,
        average_value=0,
        additional_metrics={
            "monthly_operations":
            float(monthly_entries + monthly_transfers + monthly_withdrawals),
        },
    )


REPORT_DEFINITIONS: Dict[str, ReportDefinition] = {
    "WAREHOUSE_EFFICIENCY":
    ReportDefinition(
        code="WAREHOUSE_EFFICIENCY",
        title="Warehouse Efficiency Report",
        subtitle="Performance metrics by warehouse location",
        run_fn=_report_warehouse_efficiency,
    ),
    "SUPPLIER_PERFORMANCE":
    ReportDefinition(
        code="SUPPLIER_PERFORMANCE",
        title="Supplier Performance Report",
        subtitle="Supplier delivery and cost performance analysis",
        run_fn=_report_supplier_performance,
    ),
    "INVENTORY_TURNOVER":
    ReportDefinition(
        code="INVENTORY_TURNOVER",
        title="Inventory Turnover Report",
        subtitle="Inventory velocity and turnover analysis",
        run_fn=_report_inventory_turnover,
    ),
    "OPERATIONAL_SUMMARY":
    ReportDefinition(
        code="OPERATIONAL_SUMMARY",
        title="Operational Summary Report",
        subtitle="Overall system performance and key metrics",
        run_fn=_report_operational_summary,
    ),
}


def generate_operational_report(
    identity: Any,
    db: Session,
    filters: OperationalReportFilters,
    now: Optional[datetime] = None,
) -> ActionResult[OperationalReport]:
    if not identity:
        return ActionResult.unauthorized()
    denied = require_any(identity, [Permission.VIEW_REPORTS])
    if denied:
        return denied

    defn = REPORT_DEFINITIONS.get((filters.report_type or "").upper())
    if not defn:
        return ActionResult.fail(ErrorKind.VALIDATION, "Invalid report type")

    now = now or now_local()
    try:
        records, summary = defn.run_fn(db, filters, now)
    except Exception:
        logger.exception("Error generating operational report %s", defn.code)
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to generate operational report")

    return ActionResult.ok(
        OperationalReport(
            title=defn.title,
            subtitle=defn.subtitle,
            generated_at=now,
            filters=filters,
            summary=summary,
            records=records,
        ))
