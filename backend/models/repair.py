# backend/models/repair.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# Price list entry: a repair the workshop offers
class RepairType(Base):
    __tablename__ = "repair_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False, default=0)
    # Points credited to the mechanic who completes the repair
    points = Column(Integer, CheckConstraint("points >= 0"), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    model_rows = relationship("RepairTypeModel", cascade="all, delete-orphan", back_populates="repair_type")
    inventory = relationship("InventoryItem", uselist=False, cascade="all, delete-orphan", back_populates="repair_type")

    # Empty means the repair applies to every model
    @property
    def models(self) -> list:
        return sorted(m.model for m in self.model_rows)


class RepairTypeModel(Base):
    __tablename__ = "repair_type_models"
    __table_args__ = (UniqueConstraint("repair_type_id", "model", name="uq_repair_type_model"),)

    id = Column(Integer, primary_key=True, index=True)
    repair_type_id = Column(Integer, ForeignKey("repair_types.id", ondelete="CASCADE"), nullable=False, index=True)
    model = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    repair_type = relationship("RepairType", back_populates="model_rows")


# A proposed or completed repair line item on a bike
class WorkRegistration(Base):
    __tablename__ = "work_registrations"

    id = Column(Integer, primary_key=True, index=True)
    bike_id = Column(Integer, ForeignKey("bikes.id", ondelete="CASCADE"), nullable=False, index=True)
    repair_type_id = Column(Integer, ForeignKey("repair_types.id", ondelete="CASCADE"), nullable=False)
    # Bike visit the repair belongs to
    visit = Column(Integer, nullable=False, default=1, server_default="1")
    completed = Column(Boolean, nullable=False, default=False)
    mechanic_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_modified_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    last_modified_at = Column(DateTime(timezone=True), nullable=True)

    bike = relationship("Bike", back_populates="registrations")
    repair_type = relationship("RepairType")
    mechanic = relationship("User", foreign_keys=[mechanic_id])


# Quality checks a mechanic ticks off before a bike can be completed
class CompletionChecklistItem(Base):
    __tablename__ = "completion_checklist_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BikeChecklistCompletion(Base):
    __tablename__ = "bike_checklist_completions"
    __table_args__ = (UniqueConstraint("bike_id", "checklist_item_id", name="uq_bike_checklist_item"),)

    id = Column(Integer, primary_key=True, index=True)
    bike_id = Column(Integer, ForeignKey("bikes.id", ondelete="CASCADE"), nullable=False, index=True)
    checklist_item_id = Column(Integer, ForeignKey("completion_checklist_items.id", ondelete="CASCADE"), nullable=False)
    completed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    completed_at = Column(DateTime(timezone=True), server_default=func.now())
