# backend/schemas/announcement.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

class AnnouncementCreate(BaseModel):
    message: str = Field(min_length=1)
    background_color: Optional[str] = "blue-cyan"
    text_color: Optional[str] = "white"
    icon: Optional[str] = "📢"
    is_fullscreen: bool = False
    expires_at: Optional[datetime] = None

class AnnouncementUpdate(BaseModel):
    message: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    icon: Optional[str] = None
    is_fullscreen: Optional[bool] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

class AnnouncementResponse(BaseModel):
    id: int
    message: str
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    icon: Optional[str] = None
    is_fullscreen: bool
    is_active: bool
    expires_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
