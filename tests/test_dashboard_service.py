"""
Dashboard aggregator: counts, sums, low stock, the month window and the
merged recent-activity feed.
"""
import asyncio
from datetime import date, datetime, timedelta

from conftest import NOW

from wms.core.config import settings
from wms.models import (
    AdjustmentType,
    PurchaseStatus,
    TransferStatus,
    WithdrawalStatus,
)
from wms.schemas.common import ErrorKind
from wms.schemas.dashboard import RecentActivity, StatsFilters
from wms.services.dashboard_service import (
    count_low_stock,
    dt_range,
    get_dashboard_stats,
    in_window,
    merge_recent_activity,
    month_window,
)

EARLIER = NOW - timedelta(days=1)


def _stats(identity, session_factory, filters=None, now=NOW):
    return asyncio.run(
        get_dashboard_stats(identity, session_factory, filters, now=now))


def _activity(n, ts):
    return RecentActivity(id=f"a{n}",
                          type="TRANSFER",
                          title=f"TR-{n}",
                          description="",
                          timestamp=ts,
                          status="PENDING")


# ============================================================================
# PURE HELPERS
# ============================================================================


def test_month_window_boundaries():
    window = month_window(NOW)

    assert window == (datetime(2024, 3, 1), NOW)
    assert in_window(datetime(2024, 3, 1, 0, 0, 0), window)
    assert not in_window(datetime(2024, 2, 29, 23, 59, 59), window)
    assert not in_window(NOW, window)


def test_dt_range_is_inclusive_and_swaps_reversed():
    start, end = dt_range(date(2024, 3, 10), date(2024, 3, 1))

    assert start == datetime(2024, 3, 1)
    assert end == datetime(2024, 3, 11)
    assert dt_range(None, None) == (None, None)


def test_count_low_stock_skips_items_without_reorder_level():
    rows = [(5, 10), (10, 10), (11, 10), (0, None), (0, 0)]

    assert count_low_stock(rows) == 3


def test_merge_recent_activity_sorts_and_limits():
    groups = [
        [_activity(1, NOW - timedelta(hours=5))],
        [_activity(2, NOW - timedelta(hours=1)),
         _activity(3, NOW - timedelta(hours=3))],
        [],
    ]

    merged = merge_recent_activity(groups, 2)

    assert [a.id for a in merged] == ["a2", "a3"]
    assert merge_recent_activity(groups, 0) == []


# ============================================================================
# AGGREGATOR
# ============================================================================


def test_unauthorized_without_identity():

    def boom():
        raise AssertionError("no database access expected")

    result = _stats(None, boom)

    assert not result.success
    assert result.error_kind == ErrorKind.UNAUTHORIZED
    assert result.error == "Unauthorized"


def test_empty_database_returns_zeros(session_factory, admin_identity):
    result = _stats(admin_identity, session_factory)

    assert result.success
    stats = result.data
    assert stats.inventory.total_items == 0
    assert stats.inventory.total_value == 0.0
    assert stats.item_entries.total_value == 0.0
    assert stats.item_entries.this_month_value == 0.0
    assert stats.purchases.total_value == 0.0
    assert stats.recent_activity == []


def test_inventory_counts(session_factory, make, admin_identity):
    wh = make.warehouse()
    make.warehouse()
    make.inventory(make.item(reorder_level=10), wh, 5, total_value=50)
    make.inventory(make.item(reorder_level=10), wh, 20, total_value=200)
    make.inventory(make.item(reorder_level=None), wh, 0, total_value=0)
    make.inventory(make.item(reorder_level=0), wh, 0, total_value=0)

    inv = _stats(admin_identity, session_factory).data.inventory

    assert inv.total_items == 4
    assert inv.total_value == 250.0
    assert inv.low_stock_items == 2
    assert inv.out_of_stock_items == 2
    assert inv.warehouse_count == 2


def test_month_window_applied_to_counts(session_factory, make,
                                        admin_identity):
    wh = make.warehouse()
    item = make.item()
    make.entry(item, wh, created_at=datetime(2024, 3, 1, 0, 0, 0),
               total_value=40)
    make.entry(item, wh, created_at=datetime(2024, 2, 29, 23, 59, 59),
               total_value=60)
    make.transfer(wh, make.warehouse(), created_at=datetime(2024, 3, 2))
    make.transfer(wh, make.warehouse(), created_at=datetime(2024, 2, 2))

    stats = _stats(admin_identity, session_factory).data

    assert stats.item_entries.total_entries == 2
    assert stats.item_entries.total_value == 100.0
    assert stats.item_entries.this_month_entries == 1
    assert stats.item_entries.this_month_value == 40.0
    assert stats.transfers.total_transfers == 2
    assert stats.transfers.this_month_transfers == 1


def test_status_counts(session_factory, make, admin_identity):
    wh = make.warehouse()
    other = make.warehouse()
    sup = make.supplier()
    make.purchase(sup, wh, PurchaseStatus.PENDING, 100, created_at=EARLIER)
    make.purchase(sup, wh, PurchaseStatus.RECEIVED, 50, created_at=EARLIER)
    make.transfer(wh, other, TransferStatus.PENDING, created_at=EARLIER)
    make.transfer(wh, other, TransferStatus.IN_TRANSIT, created_at=EARLIER)
    make.withdrawal(wh, WithdrawalStatus.PENDING, created_at=EARLIER)
    make.withdrawal(wh, WithdrawalStatus.APPROVED, created_at=EARLIER)
    make.withdrawal(wh, WithdrawalStatus.APPROVED, created_at=EARLIER)

    stats = _stats(admin_identity, session_factory).data

    assert stats.purchases.total_purchases == 2
    assert stats.purchases.pending_purchases == 1
    assert stats.purchases.total_value == 150.0
    assert stats.purchases.this_month_purchases == 2
    assert stats.transfers.pending_transfers == 1
    assert stats.transfers.in_transit_transfers == 1
    assert stats.withdrawals.total_withdrawals == 3
    assert stats.withdrawals.pending_withdrawals == 1
    assert stats.withdrawals.approved_withdrawals == 2


def test_warehouse_filter(session_factory, make, admin_identity):
    a = make.warehouse()
    b = make.warehouse()
    c = make.warehouse()
    make.inventory(make.item(), a, 3, total_value=30)
    make.inventory(make.item(), b, 4, total_value=40)
    make.transfer(a, b, created_at=EARLIER)
    make.transfer(b, c, created_at=EARLIER)
    make.withdrawal(b, created_at=EARLIER)

    stats = _stats(admin_identity, session_factory,
                   StatsFilters(warehouse_id=a.id)).data

    assert stats.inventory.total_items == 1
    assert stats.inventory.total_value == 30.0
    assert stats.inventory.warehouse_count == 1
    assert stats.transfers.total_transfers == 1
    assert stats.withdrawals.total_withdrawals == 0
    assert len(stats.recent_activity) == 1


def test_date_filter(session_factory, make, admin_identity):
    wh = make.warehouse()
    make.withdrawal(wh, created_at=datetime(2024, 3, 5, 8, 0))
    make.withdrawal(wh, created_at=datetime(2024, 3, 10, 23, 0))
    make.withdrawal(wh, created_at=datetime(2024, 3, 11, 0, 0))

    stats = _stats(
        admin_identity, session_factory,
        StatsFilters(date_from=date(2024, 3, 6),
                     date_to=date(2024, 3, 10))).data

    assert stats.withdrawals.total_withdrawals == 1


def test_data_access_failure(broken_factory, admin_identity):
    result = _stats(admin_identity, broken_factory)

    assert not result.success
    assert result.data is None
    assert result.error_kind == ErrorKind.DATA_ACCESS
    assert result.error == "Failed to fetch dashboard statistics"


# ============================================================================
# RECENT ACTIVITY
# ============================================================================


def test_recent_activity_titles_and_descriptions(session_factory, make,
                                                 admin_identity):
    north = make.warehouse(name="North")
    south = make.warehouse(name="South")
    sup = make.supplier(name="Acme")
    item = make.item(supplier=sup, description="Steel bolt")

    entry = make.entry(item, north, created_at=NOW - timedelta(hours=4))
    make.entry(item, north, created_at=NOW - timedelta(hours=5),
               purchase_reference="PO-77")
    make.transfer(north, south, created_at=NOW - timedelta(hours=3))
    make.withdrawal(north, purpose=None, created_at=NOW - timedelta(hours=2))
    make.adjustment(north, AdjustmentType.DAMAGE, "Broken pallet",
                    created_at=NOW - timedelta(hours=1))

    recent = _stats(admin_identity, session_factory).data.recent_activity

    assert [a.type for a in recent] == [
        "ADJUSTMENT", "WITHDRAWAL", "TRANSFER", "ITEM_ENTRY", "ITEM_ENTRY"
    ]
    by_type = {a.type: a for a in recent}
    assert by_type["ADJUSTMENT"].description == "DAMAGE - Broken pallet"
    assert by_type["ADJUSTMENT"].status == "COMPLETED"
    assert by_type["WITHDRAWAL"].description == "Material withdrawal"
    assert by_type["TRANSFER"].description == "North → South"
    assert by_type["TRANSFER"].status == "PENDING"
    assert recent[3].title == f"Entry-{entry.id[-6:]}"
    assert recent[3].description == "Steel bolt from Acme"
    assert recent[4].title == "PO-77"


def test_recent_activity_is_bounded_and_newest_first(session_factory, make,
                                                     admin_identity):
    a = make.warehouse()
    b = make.warehouse()
    for i in range(7):
        make.transfer(a, b, created_at=NOW - timedelta(minutes=2 * i))
        make.withdrawal(a, created_at=NOW - timedelta(minutes=2 * i + 1))

    recent = _stats(admin_identity, session_factory).data.recent_activity

    assert len(recent) == settings.RECENT_ACTIVITY_LIMIT
    stamps = [r.timestamp for r in recent]
    assert stamps == sorted(stamps, reverse=True)
    per_type = {t: sum(1 for r in recent if r.type == t)
                for t in ("TRANSFER", "WITHDRAWAL")}
    assert per_type["TRANSFER"] <= settings.RECENT_ACTIVITY_PER_CATEGORY
    assert per_type["WITHDRAWAL"] <= settings.RECENT_ACTIVITY_PER_CATEGORY
