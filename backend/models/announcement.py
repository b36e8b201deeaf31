# backend/models/announcement.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, func
from database import Base


# Message shown on the workshop TV, optionally taking over the whole screen
class TVAnnouncement(Base):
    __tablename__ = "tv_announcements"

    id = Column(Integer, primary_key=True, index=True)
    message = Column(Text, nullable=False)
    background_color = Column(String, nullable=True)
    text_color = Column(String, nullable=True)
    icon = Column(String, nullable=True)
    is_fullscreen = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
