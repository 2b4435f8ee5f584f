# FILE: wms/models/inventory.py
from __future__ import annotations

import enum

from sqlalchemy import (
    Column, String, Boolean, DateTime, ForeignKey, Enum, Text, UniqueConstraint,
    Index
)
from sqlalchemy.orm import relationship

from wms.db.base import Base
from wms.models.common import Id, Money, Qty, new_id
from wms.utils.timezone import now_local


class MovementType(str, enum.Enum):
    ITEM_ENTRY = "ITEM_ENTRY"
    PURCHASE_RECEIPT = "PURCHASE_RECEIPT"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    WITHDRAWAL = "WITHDRAWAL"
    ADJUSTMENT = "ADJUSTMENT"


class Item(Base):
    __tablename__ = "items"

    id = Column(Id, primary_key=True, default=new_id)
    item_code = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(String(500), nullable=False)
    unit_of_measure = Column(String(30), nullable=False, default="PCS")
    standard_cost = Column(Money, nullable=False, default=0)
    # NULL = no reorder tracking for this item
    reorder_level = Column(Qty, nullable=True)
    supplier_id = Column(Id, ForeignKey("suppliers.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=now_local, nullable=False)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    supplier = relationship("Supplier", back_populates="items")
    inventory = relationship("CurrentInventory", back_populates="item")


class CurrentInventory(Base):
    """One running balance per (item, warehouse)."""
    __tablename__ = "current_inventory"
    __table_args__ = (
        UniqueConstraint("item_id", "warehouse_id", name="uq_inventory_item_wh"),
    )

    id = Column(Id, primary_key=True, default=new_id)
    item_id = Column(Id, ForeignKey("items.id"), nullable=False, index=True)
    warehouse_id = Column(Id, ForeignKey("warehouses.id"), nullable=False, index=True)

    quantity = Column(Qty, nullable=False, default=0)
    avg_unit_cost = Column(Money, nullable=False, default=0)
    total_value = Column(Money, nullable=False, default=0)
    last_updated = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    item = relationship("Item", back_populates="inventory")
    warehouse = relationship("Warehouse", back_populates="current_inventory")


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"
    __table_args__ = (
        Index("ix_movements_item_wh_created", "item_id", "warehouse_id", "created_at"),
    )

    id = Column(Id, primary_key=True, default=new_id)
    item_id = Column(Id, ForeignKey("items.id"), nullable=False)
    warehouse_id = Column(Id, ForeignKey("warehouses.id"), nullable=False, index=True)
    movement_type = Column(Enum(MovementType, name="movement_type"), nullable=False)

    # signed: outbound movements are negative
    quantity = Column(Qty, nullable=False)
    unit_cost = Column(Money, nullable=False, default=0)
    total_value = Column(Money, nullable=False, default=0)
    reference_id = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=now_local, nullable=False)

    item = relationship("Item")
    warehouse = relationship("Warehouse", back_populates="movements")
