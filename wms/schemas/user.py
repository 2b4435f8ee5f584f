# FILE: wms/schemas/user.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from wms.models.permission import Permission
from wms.models.user import UserRole
from wms.schemas.session import GrantOut


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.USER
    is_active: bool = True


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserOut(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    permissions: List[GrantOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class PermissionsSet(BaseModel):
    permissions: List[Permission] = Field(default_factory=list)
    expires_at: Optional[datetime] = None


class PermissionGrantIn(BaseModel):
    expires_at: Optional[datetime] = None


class PasswordReset(BaseModel):
    new_password: str = Field(..., min_length=8)
