from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import utcnow


# Audit trail: logins, workflow changes, price list and account edits
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), index=True)
    resource = Column(String(50), index=True)
    status = Column(String(20), index=True)
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)

    # e.g. {"bike_id": 3, "from": "klaar", "to": "in_reparatie", "forced": true}
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)


# Every admin promotion attempt, successful or not
class AdminPromotionLog(Base):
    __tablename__ = "admin_promotion_logs"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    user_id = Column(Integer, nullable=False, index=True)
    target_user_id = Column(Integer, nullable=True)
    success = Column(Boolean, nullable=False)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)
