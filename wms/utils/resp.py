# FILE: wms/utils/resp.py
from __future__ import annotations

from typing import Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from wms.schemas.common import ActionResult, ErrorKind

STATUS_BY_KIND = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.DATA_ACCESS: 500,
}


def result_response(result: ActionResult, status_code: int = 200) -> JSONResponse:
    if not result.success:
        status_code = STATUS_BY_KIND.get(result.error_kind, 400)
    return JSONResponse(status_code=status_code,
                        content=jsonable_encoder(result))


def err(msg: str,
        status_code: int = 400,
        kind: Optional[ErrorKind] = None) -> JSONResponse:
    payload = ActionResult(success=False, error=msg, error_kind=kind)
    return JSONResponse(status_code=status_code,
                        content=jsonable_encoder(payload))
