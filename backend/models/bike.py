# backend/models/bike.py
import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Enum, func
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import utcnow


# Repair pipeline stages, in workflow order
class BikeWorkflowStatus(str, enum.Enum):
    DIAGNOSE_NODIG = "diagnose_nodig"
    DIAGNOSE_BEZIG = "diagnose_bezig"
    WACHT_OP_AKKOORD = "wacht_op_akkoord"
    WACHT_OP_ONDERDELEN = "wacht_op_onderdelen"
    KLAAR_VOOR_REPARATIE = "klaar_voor_reparatie"
    IN_REPARATIE = "in_reparatie"
    AFGEROND = "afgerond"


# Bike models the workshop services
class BikeModel(str, enum.Enum):
    S1 = "S1"
    S2 = "S2"
    S3 = "S3"
    S5 = "S5"
    S6 = "S6"
    X1 = "X1"
    X2 = "X2"
    X3 = "X3"
    X5 = "X5"
    A5 = "A5"


def _values(enum_cls):
    return [m.value for m in enum_cls]


# A bike taken in for repair; archived implicitly once its workflow reaches "afgerond"
class Bike(Base):
    __tablename__ = "bikes"

    id = Column(Integer, primary_key=True, index=True)
    frame_number = Column(String, nullable=False, index=True)
    model = Column(Enum(BikeModel, values_callable=_values), nullable=False)
    workflow_status = Column(
        Enum(BikeWorkflowStatus, values_callable=_values),
        default=BikeWorkflowStatus.DIAGNOSE_NODIG,
        nullable=False,
        index=True,
    )
    table_number = Column(String, nullable=True, index=True)
    is_sales_bike = Column(Boolean, default=False, nullable=False)

    current_mechanic_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    diagnosed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    diagnosed_at = Column(DateTime(timezone=True), nullable=True)

    # Front-of-house call tracking
    call_status_id = Column(Integer, ForeignKey("table_call_statuses.id", ondelete="SET NULL"), nullable=True)
    customer_phone = Column(String, nullable=True)

    # Bumped each time a completed bike is taken in again
    visit = Column(Integer, nullable=False, default=1, server_default="1")
    # Start of the current visit; days on the table count from here
    opened_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    registrations = relationship("WorkRegistration", back_populates="bike", cascade="all, delete-orphan")
    comments = relationship("BikeComment", cascade="all, delete-orphan", order_by="desc(BikeComment.created_at)")
    calls = relationship("BikeCallHistory", cascade="all, delete-orphan", order_by="desc(BikeCallHistory.called_at)")
    call_status = relationship("TableCallStatus")

    # Repairs of the visit in progress; earlier visits stay on record for warranty checks
    @property
    def current_registrations(self) -> list:
        return [r for r in self.registrations if r.visit == self.visit]


# Free-text note on a bike
class BikeComment(Base):
    __tablename__ = "bike_comments"

    id = Column(Integer, primary_key=True, index=True)
    bike_id = Column(Integer, ForeignKey("bikes.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    author = relationship("User")


# One registered phone call to the bike's owner
class BikeCallHistory(Base):
    __tablename__ = "bike_call_history"

    id = Column(Integer, primary_key=True, index=True)
    bike_id = Column(Integer, ForeignKey("bikes.id", ondelete="CASCADE"), nullable=False, index=True)
    called_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    called_at = Column(DateTime(timezone=True), server_default=func.now())
    notes = Column(Text, nullable=True)

    caller = relationship("User")


# Customer call states shown on the FOH table grid
class TableCallStatus(Base):
    __tablename__ = "table_call_statuses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    name_en = Column(String, nullable=False)
    color = Column(String, nullable=False, default="#6b7280")
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
