# FILE: wms/api/routes_inventory.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wms.api.deps import current_identity, get_db
from wms.schemas.inventory import InventoryFilters
from wms.schemas.session import SessionUser
from wms.services.inventory_service import get_current_inventory
from wms.utils.resp import result_response

router = APIRouter()


@router.get("/current")
def current_inventory(
        search: Optional[str] = Query(None),
        warehouse_id: Optional[str] = Query(None),
        supplier_id: Optional[str] = Query(None),
        low_stock: bool = Query(False),
        db: Session = Depends(get_db),
        me: Optional[SessionUser] = Depends(current_identity),
):
    filters = InventoryFilters(search=search,
                               warehouse_id=warehouse_id,
                               supplier_id=supplier_id,
                               low_stock=low_stock)
    return result_response(get_current_inventory(me, db, filters))
