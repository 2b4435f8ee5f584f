# FILE: wms/api/routes_dashboard.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from wms.api.deps import current_identity, get_session_factory
from wms.db.parallel import run_read
from wms.schemas.common import ActionResult
from wms.schemas.dashboard import StatsFilters
from wms.schemas.inventory import InventoryFilters
from wms.schemas.session import SessionUser
from wms.services.dashboard_service import get_dashboard_stats
from wms.services.inventory_service import get_current_inventory
from wms.services.page_sections import fetch_sections
from wms.services.settings_service import (
    SqlSettingsRepository,
    get_system_settings,
)
from wms.utils.resp import result_response

router = APIRouter()


def _filters(warehouse_id: Optional[str], date_from: Optional[date],
             date_to: Optional[date]) -> StatsFilters:
    return StatsFilters(warehouse_id=warehouse_id,
                        date_from=date_from,
                        date_to=date_to)


@router.get("/stats")
async def dashboard_stats(
        warehouse_id: Optional[str] = Query(None),
        date_from: Optional[date] = Query(None),
        date_to: Optional[date] = Query(None),
        session_factory: sessionmaker = Depends(get_session_factory),
        me: Optional[SessionUser] = Depends(current_identity),
):
    result = await get_dashboard_stats(
        me, session_factory, _filters(warehouse_id, date_from, date_to))
    return result_response(result)


@router.get("/overview")
async def dashboard_overview(
        warehouse_id: Optional[str] = Query(None),
        session_factory: sessionmaker = Depends(get_session_factory),
        me: Optional[SessionUser] = Depends(current_identity),
):
    """
    Dashboard page: stats, settings and low-stock list load independently.
    One failing section does not fail the page.
    """
    if not me:
        return result_response(ActionResult.unauthorized())

    def settings_read(db: Session) -> ActionResult:
        return get_system_settings(me, SqlSettingsRepository(db))

    def low_stock_read(db: Session) -> ActionResult:
        return get_current_inventory(
            me, db, InventoryFilters(warehouse_id=warehouse_id,
                                     low_stock=True))

    sections = await fetch_sections({
        "stats":
        get_dashboard_stats(me, session_factory,
                            _filters(warehouse_id, None, None)),
        "settings":
        run_read(session_factory, settings_read),
        "low_stock":
        run_read(session_factory, low_stock_read),
    })
    return JSONResponse(status_code=200,
                        content=jsonable_encoder(
                            ActionResult.ok(sections)))
