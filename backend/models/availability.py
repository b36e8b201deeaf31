# backend/models/availability.py
import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Enum, Text, func
from sqlalchemy.orm import relationship
from database import Base


class AvailabilityStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# A mechanic's offered working slot on one date, reviewed by an admin
class Availability(Base):
    __tablename__ = "mechanic_availability"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    # "HH:MM" strings, as entered in the planner
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(
        Enum(AvailabilityStatus, values_callable=lambda e: [m.value for m in e]),
        default=AvailabilityStatus.PENDING,
        nullable=False,
    )
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])
