# FILE: wms/schemas/session.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GrantOut(BaseModel):
    id: str
    permission: str
    granted_at: datetime
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SessionToken(BaseModel):
    """
    Session token claims. Only `sub` comes from the JWT; every other field is
    a snapshot filled in by session enrichment.
    """
    sub: Optional[str] = None

    id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    role: Optional[str] = None
    permissions: Optional[List[GrantOut]] = None
    last_login_at: Optional[datetime] = None


class SessionUser(BaseModel):
    """What the presentation layer sees as `session.user`."""
    id: str
    email: Optional[str] = None
    name: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    role: str = "USER"
    is_active: bool = False
    permissions: List[GrantOut] = Field(default_factory=list)
    last_login_at: Optional[datetime] = None


class LoginIn(BaseModel):
    login: str = Field(..., min_length=1, description="username or email")
    password: str = Field(..., min_length=1)


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: SessionUser
