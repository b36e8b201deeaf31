# backend/models/settings.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from database import Base

PROMOTION_PASSWORD_KEY = "admin_promotion_password"


# Key/value settings editable by admins
class AdminSetting(Base):
    __tablename__ = "admin_settings"

    id = Column(Integer, primary_key=True, index=True)
    setting_key = Column(String, unique=True, nullable=False)
    setting_value = Column(String, nullable=False)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
