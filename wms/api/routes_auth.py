# FILE: wms/api/routes_auth.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wms.api.deps import current_identity, get_db
from wms.schemas.common import ActionResult
from wms.schemas.session import LoginIn, SessionUser
from wms.services.session_service import sign_in
from wms.utils.resp import result_response

router = APIRouter()


@router.post("/login")
def login(payload: LoginIn, db: Session = Depends(get_db)):
    """
    POST /api/auth/login
    Username or email + password. Records last login and returns a bearer
    token with the enriched session user.
    """
    return result_response(sign_in(db, payload.login, payload.password))


@router.get("/session")
def session(me: Optional[SessionUser] = Depends(current_identity)):
    if not me:
        return result_response(ActionResult.unauthorized())
    return result_response(ActionResult.ok(me))
