# FILE: wms/models/documents.py
from __future__ import annotations

import enum

from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Text, Enum
)
from sqlalchemy.orm import relationship

from wms.db.base import Base
from wms.models.common import Id, Money, Qty, new_id
from wms.utils.timezone import now_local


# -------------------------
# Enums
# -------------------------
class PurchaseStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


class TransferStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class WithdrawalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class AdjustmentType(str, enum.Enum):
    PHYSICAL_COUNT = "PHYSICAL_COUNT"
    DAMAGE = "DAMAGE"
    THEFT = "THEFT"
    EXPIRY = "EXPIRY"
    CORRECTION = "CORRECTION"


# -------------------------
# Purchases
# -------------------------
class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Id, primary_key=True, default=new_id)
    purchase_order = Column(String(50), unique=True, nullable=False)
    supplier_id = Column(Id, ForeignKey("suppliers.id"), nullable=False, index=True)
    warehouse_id = Column(Id, ForeignKey("warehouses.id"), nullable=True, index=True)
    status = Column(Enum(PurchaseStatus, name="purchase_status"), nullable=False,
                    default=PurchaseStatus.PENDING)
    total_cost = Column(Money, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Id, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=now_local, nullable=False, index=True)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    supplier = relationship("Supplier")
    warehouse = relationship("Warehouse")


# -------------------------
# Item entries (stock received)
# -------------------------
class ItemEntry(Base):
    __tablename__ = "item_entries"

    id = Column(Id, primary_key=True, default=new_id)
    item_id = Column(Id, ForeignKey("items.id"), nullable=False, index=True)
    supplier_id = Column(Id, ForeignKey("suppliers.id"), nullable=False, index=True)
    warehouse_id = Column(Id, ForeignKey("warehouses.id"), nullable=False, index=True)

    quantity = Column(Qty, nullable=False)
    landed_cost = Column(Money, nullable=False)
    total_value = Column(Money, nullable=False)
    purchase_reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    entry_date = Column(DateTime, default=now_local, nullable=False)
    created_by_id = Column(Id, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=now_local, nullable=False, index=True)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    item = relationship("Item")
    supplier = relationship("Supplier", back_populates="item_entries")
    warehouse = relationship("Warehouse", back_populates="item_entries")


# -------------------------
# Transfers
# -------------------------
class Transfer(Base):
    __tablename__ = "transfers"

    id = Column(Id, primary_key=True, default=new_id)
    transfer_number = Column(String(50), unique=True, nullable=False)
    from_warehouse_id = Column(Id, ForeignKey("warehouses.id"), nullable=False, index=True)
    to_warehouse_id = Column(Id, ForeignKey("warehouses.id"), nullable=False, index=True)
    status = Column(Enum(TransferStatus, name="transfer_status"), nullable=False,
                    default=TransferStatus.PENDING)
    notes = Column(Text, nullable=True)
    transfer_date = Column(DateTime, default=now_local, nullable=False)
    created_by_id = Column(Id, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=now_local, nullable=False, index=True)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    from_warehouse = relationship("Warehouse", foreign_keys=[from_warehouse_id])
    to_warehouse = relationship("Warehouse", foreign_keys=[to_warehouse_id])
    items = relationship("TransferItem", back_populates="transfer",
                         cascade="all, delete-orphan")


class TransferItem(Base):
    __tablename__ = "transfer_items"

    id = Column(Id, primary_key=True, default=new_id)
    transfer_id = Column(Id, ForeignKey("transfers.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    item_id = Column(Id, ForeignKey("items.id"), nullable=False)
    quantity = Column(Qty, nullable=False)

    transfer = relationship("Transfer", back_populates="items")
    item = relationship("Item")


# -------------------------
# Withdrawals
# -------------------------
class Withdrawal(Base):
    __tablename__ = "withdrawals"

    id = Column(Id, primary_key=True, default=new_id)
    withdrawal_number = Column(String(50), unique=True, nullable=False)
    warehouse_id = Column(Id, ForeignKey("warehouses.id"), nullable=False, index=True)
    purpose = Column(String(500), nullable=True)
    status = Column(Enum(WithdrawalStatus, name="withdrawal_status"), nullable=False,
                    default=WithdrawalStatus.PENDING)
    withdrawal_date = Column(DateTime, default=now_local, nullable=False)
    created_by_id = Column(Id, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=now_local, nullable=False, index=True)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    warehouse = relationship("Warehouse", back_populates="withdrawals")
    items = relationship("WithdrawalItem", back_populates="withdrawal",
                         cascade="all, delete-orphan")


class WithdrawalItem(Base):
    __tablename__ = "withdrawal_items"

    id = Column(Id, primary_key=True, default=new_id)
    withdrawal_id = Column(Id, ForeignKey("withdrawals.id", ondelete="CASCADE"),
                           nullable=False, index=True)
    item_id = Column(Id, ForeignKey("items.id"), nullable=False)
    quantity = Column(Qty, nullable=False)
    unit_cost = Column(Money, nullable=False, default=0)
    total_value = Column(Money, nullable=False, default=0)

    withdrawal = relationship("Withdrawal", back_populates="items")
    item = relationship("Item")


# -------------------------
# Adjustments
# -------------------------
class Adjustment(Base):
    __tablename__ = "adjustments"

    id = Column(Id, primary_key=True, default=new_id)
    adjustment_number = Column(String(50), unique=True, nullable=False)
    warehouse_id = Column(Id, ForeignKey("warehouses.id"), nullable=False, index=True)
    adjustment_type = Column(Enum(AdjustmentType, name="adjustment_type"), nullable=False)
    reason = Column(String(500), nullable=False)
    notes = Column(Text, nullable=True)
    adjusted_by_id = Column(Id, ForeignKey("users.id"), nullable=True)
    adjusted_at = Column(DateTime, default=now_local, nullable=False)

    created_at = Column(DateTime, default=now_local, nullable=False, index=True)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    warehouse = relationship("Warehouse")
