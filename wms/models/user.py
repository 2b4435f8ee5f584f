import enum

from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship

from wms.db.base import Base
from wms.models.common import Id, new_id
from wms.utils.timezone import now_local


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    WAREHOUSE_MANAGER = "WAREHOUSE_MANAGER"
    INVENTORY_CLERK = "INVENTORY_CLERK"
    PURCHASER = "PURCHASER"
    APPROVER = "APPROVER"
    USER = "USER"
    VIEWER = "VIEWER"


class User(Base):
    __tablename__ = "users"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(Id, primary_key=True, default=new_id)
    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(191), unique=True,
                   nullable=True)  # <= 191, no index=True
    password_hash = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    employee_id = Column(String(50), nullable=True)
    department = Column(String(120), nullable=True)
    position = Column(String(120), nullable=True)
    phone = Column(String(50), nullable=True)

    role = Column(Enum(UserRole, name="user_role"),
                  nullable=False,
                  default=UserRole.USER)

    # deactivated, never deleted
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=now_local, nullable=False)
    updated_at = Column(DateTime,
                        default=now_local,
                        onupdate=now_local,
                        nullable=False)

    permissions = relationship(
        "UserPermission",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="UserPermission.user_id",
    )
