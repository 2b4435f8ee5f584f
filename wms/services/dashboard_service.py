# FILE: wms/services/dashboard_service.py
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload, sessionmaker

from wms.core.config import settings
from wms.db.parallel import gather_reads
from wms.models.documents import (
    Adjustment,
    ItemEntry,
    Purchase,
    PurchaseStatus,
    Transfer,
    TransferStatus,
    Withdrawal,
    WithdrawalStatus,
)
from wms.models.inventory import CurrentInventory, Item
from wms.models.warehouse import Warehouse
from wms.schemas.common import ActionResult, ErrorKind
from wms.schemas.dashboard import (
    DashboardStats,
    InventoryStats,
    ItemEntryStats,
    PurchaseStats,
    RecentActivity,
    StatsFilters,
    TransferStats,
    WithdrawalStats,
)
from wms.utils.timezone import month_start, now_local

logger = logging.getLogger(__name__)

# ---------- Helpers: time range ----------


def dt_range(
    d_from: Optional[date], d_to: Optional[date]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Convert an inclusive date range into a datetime range [start, end).
    Either side may be open. Reversed ranges are swapped.
    """
    if d_from and d_to and d_to < d_from:
        d_from, d_to = d_to, d_from
    start = datetime.combine(d_from, time.min) if d_from else None
    end = datetime.combine(d_to + timedelta(days=1), time.min) if d_to else None
    return start, end


def month_window(now: datetime) -> Tuple[datetime, datetime]:
    """First day of the current month at 00:00 (inclusive) through now (exclusive)."""
    return month_start(now), now


def in_window(ts: datetime, window: Tuple[datetime, datetime]) -> bool:
    start, end = window
    return start <= ts < end


def safe_scalar(val: Any) -> float:
    return float(val or 0)


# ---------- Helpers: scoped queries ----------


def scope(q: Query,
          filters: StatsFilters,
          *,
          ts: Any = None,
          warehouse: Sequence[Any] = ()) -> Query:
    """
    Apply warehouse / date filters. A record matches the warehouse filter when
    any of the `warehouse` columns equals it.
    """
    if filters.warehouse_id and warehouse:
        q = q.filter(or_(*[c == filters.warehouse_id for c in warehouse]))

    if ts is not None:
        start, end = dt_range(filters.date_from, filters.date_to)
        if start:
            q = q.filter(ts >= start)
        if end:
            q = q.filter(ts < end)
    return q


def between(q: Query, ts: Any, window: Tuple[datetime, datetime]) -> Query:
    start, end = window
    return q.filter(ts >= start, ts < end)


def count_rows(q: Query) -> int:
    return int(q.scalar() or 0)


def sum_rows(q: Query) -> float:
    return safe_scalar(q.scalar())


# ---------- Low stock ----------


def is_low_stock(quantity: Any, reorder_level: Any) -> bool:
    if reorder_level is None:
        return False
    return quantity <= reorder_level


def count_low_stock(rows: Iterable[Tuple[Any, Any]]) -> int:
    """
    rows: (quantity, reorder_level) pairs.
    Compared in Python, not SQL; rows without a reorder level never count.
    """
    return sum(1 for quantity, reorder_level in rows
               if is_low_stock(quantity, reorder_level))


def low_stock_rows(db: Session, filters: StatsFilters) -> List[Tuple[Any, Any]]:
    q = (db.query(CurrentInventory.quantity, Item.reorder_level).join(
        Item, CurrentInventory.item_id == Item.id).filter(
            Item.reorder_level.isnot(None)))
    q = scope(q, filters, warehouse=[CurrentInventory.warehouse_id])
    return [(r[0], r[1]) for r in q.all()]


# ---------- Recent activity ----------


def _entry_activity(e: ItemEntry) -> RecentActivity:
    item = e.item.description if e.item else ""
    supplier = e.supplier.name if e.supplier else ""
    return RecentActivity(
        id=e.id,
        type="ITEM_ENTRY",
        title=e.purchase_reference or f"Entry-{e.id[-6:]}",
        description=f"{item} from {supplier}",
        timestamp=e.created_at,
        status="COMPLETED",
    )


def _transfer_activity(t: Transfer) -> RecentActivity:
    src = t.from_warehouse.name if t.from_warehouse else ""
    dst = t.to_warehouse.name if t.to_warehouse else ""
    return RecentActivity(
        id=t.id,
        type="TRANSFER",
        title=t.transfer_number,
        description=f"{src} → {dst}",
        timestamp=t.created_at,
        status=t.status.value,
    )


def _withdrawal_activity(w: Withdrawal) -> RecentActivity:
    return RecentActivity(
        id=w.id,
        type="WITHDRAWAL",
        title=w.withdrawal_number,
        description=w.purpose or "Material withdrawal",
        timestamp=w.created_at,
        status=w.status.value,
    )


def _adjustment_activity(a: Adjustment) -> RecentActivity:
    return RecentActivity(
        id=a.id,
        type="ADJUSTMENT",
        title=a.adjustment_number,
        description=f"{a.adjustment_type.value} - {a.reason}",
        timestamp=a.created_at,
        status="COMPLETED",
    )


def merge_recent_activity(groups: Iterable[Iterable[RecentActivity]],
                          limit: int) -> List[RecentActivity]:
    """Concatenate, newest first, keep at most `limit`."""
    merged = [a for group in groups for a in group]
    merged.sort(key=lambda a: a.timestamp, reverse=True)
    return merged[:max(limit, 0)]


def _recent(model, options, ts, warehouse, mapper, filters: StatsFilters,
            take: int) -> Callable[[Session], List[RecentActivity]]:

    def read(db: Session) -> List[RecentActivity]:
        q = db.query(model).options(*options)
        q = scope(q, filters, ts=ts, warehouse=warehouse)
        return [mapper(r) for r in q.order_by(ts.desc()).limit(take).all()]

    return read


def recent_activity_reads(
        filters: StatsFilters,
        take: int) -> Dict[str, Callable[[Session], List[RecentActivity]]]:
    return {
        "recent_entries":
        _recent(ItemEntry,
                [joinedload(ItemEntry.item),
                 joinedload(ItemEntry.supplier)], ItemEntry.created_at,
                [ItemEntry.warehouse_id], _entry_activity, filters, take),
        "recent_transfers":
        _recent(Transfer, [
            joinedload(Transfer.from_warehouse),
            joinedload(Transfer.to_warehouse)
        ], Transfer.created_at,
                [Transfer.from_warehouse_id, Transfer.to_warehouse_id],
                _transfer_activity, filters, take),
        "recent_withdrawals":
        _recent(Withdrawal, [], Withdrawal.created_at,
                [Withdrawal.warehouse_id], _withdrawal_activity, filters,
                take),
        "recent_adjustments":
        _recent(Adjustment, [], Adjustment.created_at,
                [Adjustment.warehouse_id], _adjustment_activity, filters,
                take),
    }


# ---------- Aggregator ----------


def _stats_reads(filters: StatsFilters,
                 now: datetime) -> Dict[str, Callable[[Session], Any]]:
    month = month_window(now)
    f = filters

    inv_wh = [CurrentInventory.warehouse_id]
    entry_wh = [ItemEntry.warehouse_id]
    purchase_wh = [Purchase.warehouse_id]
    transfer_wh = [Transfer.from_warehouse_id, Transfer.to_warehouse_id]
    withdrawal_wh = [Withdrawal.warehouse_id]

    def entries(db: Session, *cols):
        return scope(db.query(*cols), f, ts=ItemEntry.entry_date,
                     warehouse=entry_wh)

    def purchases(db: Session, *cols):
        return scope(db.query(*cols), f, ts=Purchase.created_at,
                     warehouse=purchase_wh)

    def transfers(db: Session):
        return scope(db.query(func.count(Transfer.id)), f,
                     ts=Transfer.created_at, warehouse=transfer_wh)

    def withdrawals(db: Session):
        return scope(db.query(func.count(Withdrawal.id)), f,
                     ts=Withdrawal.created_at, warehouse=withdrawal_wh)

    return {
        # inventory (current snapshot, warehouse scope only)
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
        "warehouse_count": lambda db: count_rows(
            scope(db.query(func.count(Warehouse.id)), f,
                  warehouse=[Warehouse.id])),
        # item entries
        "entries_total": lambda db: count_rows(
            entries(db, func.count(ItemEntry.id))),
        "entries_value": lambda db: sum_rows(
            entries(db, func.sum(ItemEntry.total_value))),
        "entries_month": lambda db: count_rows(
            between(entries(db, func.count(ItemEntry.id)),
                    ItemEntry.entry_date, month)),
        "entries_month_value": lambda db: sum_rows(
            between(entries(db, func.sum(ItemEntry.total_value)),
                    ItemEntry.entry_date, month)),
        # purchases
        "purchases_total": lambda db: count_rows(
            purchases(db, func.count(Purchase.id))),
        "purchases_pending": lambda db: count_rows(
            purchases(db, func.count(Purchase.id)).filter(
                Purchase.status == PurchaseStatus.PENDING)),
        "purchases_value": lambda db: sum_rows(
            purchases(db, func.sum(Purchase.total_cost))),
        "purchases_month": lambda db: count_rows(
            between(purchases(db, func.count(Purchase.id)),
                    Purchase.created_at, month)),
        # transfers
        "transfers_total": lambda db: count_rows(transfers(db)),
        "transfers_pending": lambda db: count_rows(
            transfers(db).filter(Transfer.status == TransferStatus.PENDING)),
        "transfers_in_transit": lambda db: count_rows(
            transfers(db).filter(
                Transfer.status == TransferStatus.IN_TRANSIT)),
        "transfers_month": lambda db: count_rows(
            between(transfers(db), Transfer.created_at, month)),
        # withdrawals
        "withdrawals_total": lambda db: count_rows(withdrawals(db)),
        "withdrawals_pending": lambda db: count_rows(
            withdrawals(db).filter(
                Withdrawal.status == WithdrawalStatus.PENDING)),
        "withdrawals_approved": lambda db: count_rows(
            withdrawals(db).filter(
                Withdrawal.status == WithdrawalStatus.APPROVED)),
        "withdrawals_month": lambda db: count_rows(
            between(withdrawals(db), Withdrawal.created_at, month)),
    }


def _build_stats(r: Dict[str, Any], limit: int) -> DashboardStats:
    recent = merge_recent_activity(
        [
            r["recent_entries"],
            r["recent_transfers"],
            r["recent_withdrawals"],
            r["recent_adjustments"],
        ],
        limit,
    )

    return DashboardStats(
        inventory=InventoryStats(
            total_items=r["inv_total_items"],
            total_value=r["inv_total_value"],
            low_stock_items=count_low_stock(r["inv_low_stock_rows"]),
            out_of_stock_items=r["inv_out_of_stock"],
            warehouse_count=r["warehouse_count"],
        ),
        item_entries=ItemEntryStats(
            total_entries=r["entries_total"],
            total_value=r["entries_value"],
            this_month_entries=r["entries_month"],
            this_month_value=r["entries_month_value"],
        ),
        purchases=PurchaseStats(
            total_purchases=r["purchases_total"],
            pending_purchases=r["purchases_pending"],
            total_value=r["purchases_value"],
            this_month_purchases=r["purchases_month"],
        ),
        transfers=TransferStats(
            total_transfers=r["transfers_total"],
            pending_transfers=r["transfers_pending"],
            in_transit_transfers=r["transfers_in_transit"],
            this_month_transfers=r["transfers_month"],
        ),
        withdrawals=WithdrawalStats(
            total_withdrawals=r["withdrawals_total"],
            pending_withdrawals=r["withdrawals_pending"],
            approved_withdrawals=r["withdrawals_approved"],
            this_month_withdrawals=r["withdrawals_month"],
        ),
        recent_activity=recent,
    )


async def get_dashboard_stats(
    identity: Any,
    session_factory: sessionmaker,
    filters: Optional[StatsFilters] = None,
    now: Optional[datetime] = None,
) -> ActionResult[DashboardStats]:
    """
    Composite dashboard statistics plus the recent-activity feed.

    Every count/sum/list runs concurrently on its own session. One failing
    read fails the whole call; no partial stats are returned.
    """
    if not identity:
        return ActionResult.unauthorized()

    filters = filters or StatsFilters()
    now = now or now_local()

    reads = _stats_reads(filters, now)
    reads.update(
        recent_activity_reads(filters, settings.RECENT_ACTIVITY_PER_CATEGORY))

    try:
        results = await gather_reads(session_factory, reads)
        stats = _build_stats(results, settings.RECENT_ACTIVITY_LIMIT)
    except Exception:
        logger.exception("Error fetching dashboard stats")
        return ActionResult.fail(ErrorKind.DATA_ACCESS,
                                 "Failed to fetch dashboard statistics")

    return ActionResult.ok(stats)
