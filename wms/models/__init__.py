# wms/models/__init__.py
from .user import User, UserRole
from .permission import Permission, UserPermission
from .warehouse import Warehouse, Supplier
from .inventory import Item, CurrentInventory, InventoryMovement, MovementType
from .documents import (
    Purchase,
    PurchaseStatus,
    ItemEntry,
    Transfer,
    TransferItem,
    TransferStatus,
    Withdrawal,
    WithdrawalItem,
    WithdrawalStatus,
    Adjustment,
    AdjustmentType,
)
from .audit import AuditLog
from .settings import SystemSetting

__all__ = [
    "User",
    "UserRole",
    "Permission",
    "UserPermission",
    "Warehouse",
    "Supplier",
    "Item",
    "CurrentInventory",
    "InventoryMovement",
    "MovementType",
    "Purchase",
    "PurchaseStatus",
    "ItemEntry",
    "Transfer",
    "TransferItem",
    "TransferStatus",
    "Withdrawal",
    "WithdrawalItem",
    "WithdrawalStatus",
    "Adjustment",
    "AdjustmentType",
    "AuditLog",
    "SystemSetting",
]
