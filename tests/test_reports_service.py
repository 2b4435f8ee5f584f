"""
Reports: the parallel summary and the operational report definitions.
"""
import asyncio
from datetime import datetime, timedelta

import pytest
from conftest import NOW, identity_for

from wms.models import MovementType, Permission, TransferStatus
from wms.schemas.common import ErrorKind
from wms.schemas.reports import OperationalReportFilters
from wms.services.reports_service import (
    REPORT_DEFINITIONS,
    generate_operational_report,
    get_reports_data,
)

EARLIER = NOW - timedelta(days=2)
LAST_MONTH = datetime(2024, 2, 10)


@pytest.fixture
def reporter(make):
    return identity_for(make.user(), Permission.VIEW_REPORTS)


def _summary(identity, session_factory):
    return asyncio.run(get_reports_data(identity, session_factory, now=NOW))


def _report(identity, db, report_type, **kw):
    return generate_operational_report(
        identity, db, OperationalReportFilters(report_type=report_type, **kw),
        now=NOW)


# ============================================================================
# SUMMARY
# ============================================================================


def test_summary_requires_view_reports(session_factory, make):
    plain = identity_for(make.user())

    result = _summary(plain, session_factory)

    assert result.error_kind == ErrorKind.FORBIDDEN
    assert _summary(None, session_factory).error_kind == \
        ErrorKind.UNAUTHORIZED


def test_summary_totals(session_factory, make, reporter):
    a = make.warehouse()
    b = make.warehouse()
    sup = make.supplier()
    make.inventory(make.item(reorder_level=5), a, 2, total_value=20)
    make.inventory(make.item(), a, 0, total_value=0)
    make.purchase(sup, a, total_cost=300, created_at=EARLIER)
    make.purchase(sup, a, total_cost=100, created_at=LAST_MONTH)
    make.transfer(a, b, TransferStatus.PENDING, created_at=EARLIER)
    make.transfer(a, b, TransferStatus.IN_TRANSIT, created_at=EARLIER)
    make.transfer(a, b, TransferStatus.COMPLETED, created_at=LAST_MONTH)
    make.withdrawal(a, created_at=EARLIER, values=[10, 15])
    make.withdrawal(a, created_at=LAST_MONTH, values=[5])

    data = _summary(reporter, session_factory).data

    assert data.inventory_summary.total_items == 2
    assert data.inventory_summary.total_value == 20.0
    assert data.inventory_summary.low_stock_items == 1
    assert data.inventory_summary.out_of_stock_items == 1
    assert data.purchase_summary.total_count == 2
    assert data.purchase_summary.total_value == 400.0
    assert data.purchase_summary.monthly_count == 1
    assert data.purchase_summary.monthly_value == 300.0
    assert data.transfer_summary.active_transfers == 2
    assert data.transfer_summary.monthly_count == 2
    assert data.transfer_summary.total_count == 3
    assert data.withdrawal_summary.total_value == 30.0
    assert data.withdrawal_summary.monthly_value == 25.0
    assert data.withdrawal_summary.monthly_count == 1


def test_summary_data_access_failure(broken_factory, reporter):
    result = _summary(reporter, broken_factory)

    assert result.error_kind == ErrorKind.DATA_ACCESS
    assert result.error == "Failed to fetch reports data"


# ============================================================================
# OPERATIONAL REPORTS
# ============================================================================


def test_invalid_report_type(db, reporter):
    result = _report(reporter, db, "NOT_A_REPORT")

    assert result.error_kind == ErrorKind.VALIDATION
    assert result.error == "Invalid report type"


def test_report_type_is_case_insensitive(db, reporter):
    result = _report(reporter, db, "operational_summary")

    assert result.success
    assert result.data.title == REPORT_DEFINITIONS[
        "OPERATIONAL_SUMMARY"].title


def test_operational_report_requires_view_reports(db, make):
    result = _report(identity_for(make.user()), db, "OPERATIONAL_SUMMARY")

    assert result.error_kind == ErrorKind.FORBIDDEN


def test_warehouse_efficiency(db, make, reporter):
    a = make.warehouse(name="Alpha")
    b = make.warehouse(name="Beta", location="Dock 2")
    item = make.item()
    make.inventory(item, a, 10, total_value=100)
    for _ in range(4):
        make.movement(item, a, MovementType.ITEM_ENTRY, 1)
    make.transfer(a, b)

    result = _report(reporter, db, "WAREHOUSE_EFFICIENCY")

    records = {r["warehouse_name"]: r for r in result.data.records}
    assert records["Alpha"]["location"] == "N/A"
    assert records["Alpha"]["efficiency_score"] == 25
    assert records["Alpha"]["total_value"] == 100.0
    assert records["Beta"]["total_transfers"] == 1
    assert records["Beta"]["efficiency_score"] == 0
    assert result.data.summary.total_records == 2
    assert result.data.summary.average_value == 50.0


def test_warehouse_efficiency_filtered(db, make, reporter):
    a = make.warehouse(name="Alpha")
    make.warehouse(name="Beta")

    result = _report(reporter, db, "WAREHOUSE_EFFICIENCY", warehouse_id=a.id)

    assert [r["warehouse_name"] for r in result.data.records] == ["Alpha"]


def test_supplier_performance(db, make, reporter):
    sup = make.supplier(name="Acme")
    idle = make.supplier(name="Idle Co")
    wh = make.warehouse()
    item = make.item(supplier=sup)
    for day in (1, 2, 3):
        make.entry(item, wh, created_at=datetime(2024, 3, day),
                   total_value=10)

    result = _report(reporter, db, "SUPPLIER_PERFORMANCE")

    records = {r["supplier_name"]: r for r in result.data.records}
    assert records["Acme"]["total_entries"] == 3
    assert records["Acme"]["total_value"] == 30.0
    assert records["Acme"]["performance_score"] == 10
    assert records["Acme"]["last_entry_date"] == "2024-03-03"
    assert records[idle.name]["last_entry_date"] == "N/A"
    assert records[idle.name]["performance_score"] == 0


def test_inventory_turnover(db, make, reporter):
    wh = make.warehouse()
    item = make.item()
    make.inventory(item, wh, 30, total_value=300)
    make.movement(item, wh, MovementType.WITHDRAWAL, -10)
    make.movement(item, wh, MovementType.ITEM_ENTRY, 40)

    result = _report(reporter, db, "INVENTORY_TURNOVER")

    (row,) = result.data.records
    assert row["outbound_quantity"] == 10.0
    assert row["average_inventory"] == 20.0
    assert row["turnover_ratio"] == 0.5
    assert row["days_on_hand"] == 730


def test_operational_summary_metrics(db, make, reporter):
    wh = make.warehouse()
    make.warehouse(is_active=False)
    make.withdrawal(wh, created_at=EARLIER)
    make.withdrawal(wh, created_at=LAST_MONTH)

    result = _report(reporter, db, "OPERATIONAL_SUMMARY")

    metrics = {r["metric"]: r["value"] for r in result.data.records}
    assert metrics["Monthly Withdrawals"] == 1
    assert metrics["Active Warehouses"] == 1
    assert result.data.summary.additional_metrics["monthly_operations"] == 1
