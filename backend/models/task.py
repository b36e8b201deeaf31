# backend/models/task.py
import enum
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import utcnow


class FohTaskStatus(str, enum.Enum):
    NOG_NIET_GESTART = "nog_niet_gestart"
    IN_BEHANDELING = "in_behandeling"
    AFGEROND = "afgerond"


# Front-of-house to-do, optionally handed to a colleague or tied to a bike
class FohTask(Base):
    __tablename__ = "foh_tasks"

    id = Column(Integer, primary_key=True, index=True)
    # Human facing number, shown as #12 on the task board
    task_number = Column(Integer, nullable=False, unique=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(FohTaskStatus, name="foh_task_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=FohTaskStatus.NOG_NIET_GESTART,
        index=True,
    )
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    bike_id = Column(Integer, ForeignKey("bikes.id", ondelete="SET NULL"), nullable=True)
    deadline = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    assignee = relationship("User", foreign_keys=[assigned_to])
    creator = relationship("User", foreign_keys=[created_by])
    bike = relationship("Bike")
