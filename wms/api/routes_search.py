# FILE: wms/api/routes_search.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import sessionmaker

from wms.api.deps import current_identity, get_session_factory
from wms.schemas.search import SearchFilters
from wms.schemas.session import SessionUser
from wms.services.search_service import global_search
from wms.utils.resp import result_response

router = APIRouter()


@router.get("")
async def search(
        q: str = Query(""),
        type: Optional[str] = Query(None),
        limit: int = Query(50, ge=1, le=200),
        session_factory: sessionmaker = Depends(get_session_factory),
        me: Optional[SessionUser] = Depends(current_identity),
):
    filters = SearchFilters(query=q, type=type, limit=limit)
    return result_response(await global_search(me, session_factory, filters))
