import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from wms.db.base import Base
from wms.models.common import Id, new_id
from wms.utils.timezone import now_local


class Permission(str, enum.Enum):
    # Items
    CREATE_ITEMS = "CREATE_ITEMS"
    UPDATE_ITEMS = "UPDATE_ITEMS"
    DELETE_ITEMS = "DELETE_ITEMS"
    VIEW_ITEMS = "VIEW_ITEMS"
    # Purchases
    CREATE_PURCHASES = "CREATE_PURCHASES"
    APPROVE_PURCHASES = "APPROVE_PURCHASES"
    VIEW_PURCHASES = "VIEW_PURCHASES"
    CANCEL_PURCHASES = "CANCEL_PURCHASES"
    # Item entries
    CREATE_ITEM_ENTRIES = "CREATE_ITEM_ENTRIES"
    VIEW_ITEM_ENTRIES = "VIEW_ITEM_ENTRIES"
    # Transfers
    CREATE_TRANSFERS = "CREATE_TRANSFERS"
    APPROVE_TRANSFERS = "APPROVE_TRANSFERS"
    VIEW_TRANSFERS = "VIEW_TRANSFERS"
    CANCEL_TRANSFERS = "CANCEL_TRANSFERS"
    # Withdrawals
    REQUEST_WITHDRAWALS = "REQUEST_WITHDRAWALS"
    CREATE_WITHDRAWALS = "CREATE_WITHDRAWALS"
    APPROVE_WITHDRAWALS = "APPROVE_WITHDRAWALS"
    VIEW_WITHDRAWALS = "VIEW_WITHDRAWALS"
    CANCEL_WITHDRAWALS = "CANCEL_WITHDRAWALS"
    # Inventory
    ADJUST_INVENTORY = "ADJUST_INVENTORY"
    VIEW_INVENTORY = "VIEW_INVENTORY"
    RECOUNT_INVENTORY = "RECOUNT_INVENTORY"
    # Reports
    VIEW_REPORTS = "VIEW_REPORTS"
    EXPORT_REPORTS = "EXPORT_REPORTS"
    VIEW_COST_REPORTS = "VIEW_COST_REPORTS"
    # Administration
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_WAREHOUSES = "MANAGE_WAREHOUSES"
    MANAGE_SUPPLIERS = "MANAGE_SUPPLIERS"
    VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"
    SYSTEM_SETTINGS = "SYSTEM_SETTINGS"


class UserPermission(Base):
    """
    A grant of one permission tag to one user, optionally time-bounded.
    Whether it is active is decided when read (expires_at vs now).
    """
    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "permission",
                         name="uq_user_permission"),
        {
            "mysql_engine": "InnoDB",
            "mysql_charset": "utf8mb4",
            "mysql_collate": "utf8mb4_unicode_ci",
        },
    )

    id = Column(Id, primary_key=True, default=new_id)
    user_id = Column(Id,
                     ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False,
                     index=True)
    # stored as the tag string; validated against Permission on write
    permission = Column(String(64), nullable=False)

    granted_by = Column(String(64), nullable=True)  # user id or "SYSTEM"
    granted_at = Column(DateTime, default=now_local, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    user = relationship("User",
                        back_populates="permissions",
                        foreign_keys=[user_id])
