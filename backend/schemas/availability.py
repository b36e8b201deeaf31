# backend/schemas/availability.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
import datetime as dt
from typing import List, Literal, Optional

from models.availability import AvailabilityStatus

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

class AvailabilityTimes(BaseModel):
    start_time: str = Field("09:00", pattern=TIME_PATTERN)
    end_time: str = Field("17:00", pattern=TIME_PATTERN)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

class AvailabilityCreate(AvailabilityTimes):
    date: dt.date

class AvailabilityBulkCreate(AvailabilityTimes):
    dates: List[dt.date] = Field(min_length=1)

class AvailabilityUpdate(AvailabilityTimes):
    date: Optional[dt.date] = None

class AvailabilityDecision(BaseModel):
    status: Literal["approved", "rejected"]

class AvailabilityResponse(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    date: dt.date
    start_time: str
    end_time: str
    notes: Optional[str] = None
    status: AvailabilityStatus
    approved_by: Optional[int] = None
    approved_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)
