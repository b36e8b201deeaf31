# backend/models/inventory.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# Parts counted together, e.g. every inner tube size on one shelf
class InventoryGroup(Base):
    __tablename__ = "inventory_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=5)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("InventoryItem", back_populates="group")


# Stock of the part behind one price list entry
class InventoryItem(Base):
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    repair_type_id = Column(
        Integer, ForeignKey("repair_types.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=5)
    purchase_price = Column(Float, nullable=False, default=0)
    group_id = Column(Integer, ForeignKey("inventory_groups.id", ondelete="SET NULL"), nullable=True, index=True)
    # Labour-only entries are never counted
    unlimited_stock = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    repair_type = relationship("RepairType", back_populates="inventory")
    group = relationship("InventoryGroup", back_populates="items")
