# FILE: wms/api/routes_reports.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, sessionmaker

from wms.api.deps import current_identity, get_db, get_session_factory
from wms.schemas.dashboard import StatsFilters
from wms.schemas.reports import InventoryReportFilters, OperationalReportFilters
from wms.schemas.session import SessionUser
from wms.services.inventory_reports import generate_inventory_report
from wms.services.reports_service import (
    generate_operational_report,
    get_reports_data,
)
from wms.utils.resp import result_response

router = APIRouter()


@router.get("/summary")
async def reports_summary(
        warehouse_id: Optional[str] = Query(None),
        date_from: Optional[date] = Query(None),
        date_to: Optional[date] = Query(None),
        session_factory: sessionmaker = Depends(get_session_factory),
        me: Optional[SessionUser] = Depends(current_identity),
):
    filters = StatsFilters(warehouse_id=warehouse_id,
                           date_from=date_from,
                           date_to=date_to)
    return result_response(await get_reports_data(me, session_factory,
                                                  filters))


@router.post("/operational")
def operational_report(
        payload: OperationalReportFilters,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    """
    POST /api/reports/operational
    {"report_type": "WAREHOUSE_EFFICIENCY", "warehouse_id": null, ...}
    """
    return result_response(generate_operational_report(me, db, payload))


@router.post("/generate")
def inventory_report(
        payload: InventoryReportFilters,
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    """
    POST /api/reports/generate
    {"report_type": "LOW_STOCK_REPORT", "include_zero_stock": false, ...}
    """
    return result_response(generate_inventory_report(me, db, payload))
