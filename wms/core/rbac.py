from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional, Set

from wms.core.config import settings
from wms.schemas.common import ActionResult, ErrorKind


def _code(x: Any) -> str:
    """
    Normalize a permission code.
    Supports:
      - Enum -> enum.value
      - str  -> str
      - object with .permission (a grant) -> str/Enum
      - dict {"permission": ...}
    """
    if x is None:
        return ""

    if isinstance(x, Enum):
        return str(x.value)

    if isinstance(x, str):
        return x

    if isinstance(x, dict) and "permission" in x:
        return _code(x["permission"])

    if hasattr(x, "permission"):
        return _code(getattr(x, "permission"))

    return str(x)


def is_admin_user(user: Any) -> bool:
    """
    SUPER_ADMIN always bypasses permission checks.
    ADMIN only when ADMIN_ALL_ACCESS is on.
    """
    if not user:
        return False
    role = _code(getattr(user, "role", None)).upper()
    if role == "SUPER_ADMIN":
        return True
    if role == "ADMIN" and settings.ADMIN_ALL_ACCESS:
        return True
    return False


def permission_codes(user: Any) -> Set[str]:
    """
    Active permission tags of an enriched session user.
    Expired grants were already dropped by session enrichment.
    """
    out: Set[str] = set()
    if not user:
        return out

    for p in getattr(user, "permissions", None) or []:
        c = _code(p).strip()
        if c:
            out.add(c)
    return out


def has_perm(user: Any, code: Any) -> bool:
    if is_admin_user(user):
        return True

    want = _code(code).strip()
    if not want:
        return False

    return want in permission_codes(user)


def require_any(user: Any,
                required: Iterable[Any],
                *,
                message: Optional[str] = None) -> Optional[ActionResult]:
    """
    None when the user holds at least one of `required`,
    otherwise a FORBIDDEN result for the caller to return.
    """
    if not user:
        return ActionResult.unauthorized()

    if is_admin_user(user):
        return None

    required_set = {_code(x).strip() for x in required if _code(x).strip()}
    if not required_set:
        return None

    if permission_codes(user).intersection(required_set):
        return None

    return ActionResult.fail(
        ErrorKind.FORBIDDEN,
        message or "You do not have permission to perform this action.",
    )
