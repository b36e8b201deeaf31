# backend/models/rate_limit.py
from sqlalchemy import Column, Integer, String, DateTime
from database import Base
from utils.clock import utcnow


# Attempt counter for privileged actions, keyed "<purpose>:<userId>"
class RateLimitAttempt(Base):
    __tablename__ = "rate_limit_attempts"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    window_start = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
