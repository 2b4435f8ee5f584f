from sqlalchemy import Column, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship

from wms.db.base import Base
from wms.models.common import Id, new_id
from wms.utils.timezone import now_local


class Warehouse(Base):
    __tablename__ = "warehouses"

    id = Column(Id, primary_key=True, default=new_id)
    name = Column(String(200), nullable=False, unique=True)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=now_local, nullable=False)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    current_inventory = relationship("CurrentInventory", back_populates="warehouse")
    movements = relationship("InventoryMovement", back_populates="warehouse")
    item_entries = relationship("ItemEntry", back_populates="warehouse")
    withdrawals = relationship("Withdrawal", back_populates="warehouse")


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Id, primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    contact_info = Column(String(500), nullable=True)
    address = Column(String(1000), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=now_local, nullable=False)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local, nullable=False)

    items = relationship("Item", back_populates="supplier")
    item_entries = relationship("ItemEntry", back_populates="supplier")
