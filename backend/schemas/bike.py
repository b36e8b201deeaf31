# backend/schemas/bike.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime
from typing import List, Optional

from models.bike import BikeModel, BikeWorkflowStatus

# Input schema for taking a bike in
class BikeCreate(BaseModel):
    frame_number: str = Field(min_length=1)
    model: BikeModel
    table_number: Optional[str] = None
    customer_phone: Optional[str] = None
    is_sales_bike: bool = False

    @field_validator("frame_number")
    @classmethod
    def _normalize_frame(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Frame number is required")
        return v

# Partial update of the bike's placement and FOH data
class BikeUpdate(BaseModel):
    table_number: Optional[str] = None
    customer_phone: Optional[str] = None
    call_status_id: Optional[int] = None
    current_mechanic_id: Optional[int] = None
    is_sales_bike: Optional[bool] = None

class WorkflowUpdate(BaseModel):
    workflow_status: BikeWorkflowStatus
    # Admin override of the transition table
    force: bool = False

class RegistrationOut(BaseModel):
    id: int
    repair_type_id: int
    repair_name: str
    price: float
    points: int
    completed: bool
    mechanic_id: Optional[int] = None
    mechanic_name: Optional[str] = None
    completed_at: Optional[datetime] = None

class CommentCreate(BaseModel):
    content: str = Field(min_length=1)

class CommentOut(BaseModel):
    id: int
    content: str
    created_at: Optional[datetime] = None
    author_id: Optional[int] = None
    author_name: Optional[str] = None

class CallCreate(BaseModel):
    notes: Optional[str] = None

class CallOut(BaseModel):
    id: int
    called_at: Optional[datetime] = None
    called_by: Optional[int] = None
    caller_name: Optional[str] = None
    notes: Optional[str] = None

class BikeResponse(BaseModel):
    id: int
    frame_number: str
    model: BikeModel
    workflow_status: BikeWorkflowStatus
    status_label: str
    progress: float
    table_number: Optional[str] = None
    is_sales_bike: bool
    customer_phone: Optional[str] = None
    call_status_id: Optional[int] = None
    current_mechanic_id: Optional[int] = None
    diagnosed_by: Optional[int] = None
    diagnosed_at: Optional[datetime] = None
    visit: int = 1
    opened_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class BikeDetail(BikeResponse):
    # Repairs of the current visit only
    registrations: List[RegistrationOut] = []
    comments: List[CommentOut] = []
    calls: List[CallOut] = []

class BikesPage(BaseModel):
    items: List[BikeResponse]
    total: int
    page: int
    page_size: int

# Public status page: no phone numbers or staff data
class CustomerStatusResponse(BaseModel):
    frame_number: str
    model: BikeModel
    workflow_status: BikeWorkflowStatus
    label: str
    description: str
    icon: str
    progress: float
    table_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    steps: List[dict]

class CallStatusBase(BaseModel):
    name: str = Field(min_length=1)
    name_en: str = Field(min_length=1)
    color: str = "#6b7280"
    sort_order: int = 0

class CallStatusCreate(CallStatusBase):
    pass

class CallStatusResponse(CallStatusBase):
    id: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
