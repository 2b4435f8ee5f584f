# FILE: wms/schemas/common.py
from __future__ import annotations

import enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    DATA_ACCESS = "DATA_ACCESS"


class ActionResult(BaseModel, Generic[T]):
    """
    Uniform return shape of every service operation:
      {success, data?, error?, error_kind?}
    success is True exactly when error_kind is None.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "ActionResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "ActionResult[T]":
        return cls(success=False, error=message, error_kind=kind)

    @classmethod
    def unauthorized(cls) -> "ActionResult[T]":
        return cls.fail(ErrorKind.UNAUTHORIZED, "Unauthorized")

    @classmethod
    def not_found(cls, what: str) -> "ActionResult[T]":
        return cls.fail(ErrorKind.NOT_FOUND, f"{what} not found")
