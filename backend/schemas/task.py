# backend/schemas/task.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import date, datetime
from typing import Optional

from models.task import FohTaskStatus

class FohTaskCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    bike_id: Optional[int] = None
    deadline: Optional[date] = None
    notes: Optional[str] = None

class FohTaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    bike_id: Optional[int] = None
    deadline: Optional[date] = None
    notes: Optional[str] = None

class FohTaskStatusUpdate(BaseModel):
    status: FohTaskStatus

class FohTaskNotes(BaseModel):
    notes: Optional[str] = None

class FohTaskReject(BaseModel):
    reason: str

class FohTaskResponse(BaseModel):
    id: int
    task_number: int
    title: str
    description: Optional[str] = None
    status: FohTaskStatus
    assigned_to: Optional[int] = None
    assigned_to_name: Optional[str] = None
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    bike_id: Optional[int] = None
    frame_number: Optional[str] = None
    deadline: Optional[date] = None
    notes: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class OpenTaskCount(BaseModel):
    count: int
