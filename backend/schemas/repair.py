# backend/schemas/repair.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional

from models.bike import BikeModel

# Base schema for price list entries
class RepairTypeBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(0, ge=0)
    points: int = Field(0, ge=0)
    # Empty list: applies to every model
    models: List[BikeModel] = []

class RepairTypeCreate(RepairTypeBase):
    pass

class RepairTypeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    points: Optional[int] = Field(None, ge=0)
    models: Optional[List[BikeModel]] = None

class RepairTypeResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    points: int
    models: List[str] = []
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# Mechanic's diagnosis: the repairs the bike needs
class DiagnosisCreate(BaseModel):
    repair_type_ids: List[int] = Field(min_length=1)

class ExtraRepairCreate(BaseModel):
    repair_type_id: int

# FOH decision on proposed repairs; everything not listed is rejected
class ApprovalSubmit(BaseModel):
    approved_ids: List[int] = []

class ApprovalResult(BaseModel):
    approved: int
    rejected: int
    total_price: float
    workflow_status: str

class RegistrationUpdate(BaseModel):
    completed: bool

class ChecklistItemBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True

class ChecklistItemCreate(ChecklistItemBase):
    pass

class ChecklistItemResponse(ChecklistItemBase):
    id: int

    model_config = ConfigDict(from_attributes=True)

class BikeChecklistState(BaseModel):
    bike_id: int
    items: List[ChecklistItemResponse]
    completed_item_ids: List[int]
    all_completed: bool
