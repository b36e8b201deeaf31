# backend/schemas/warranty.py
from pydantic import BaseModel
from datetime import datetime
from typing import Dict, List, Optional

# A repair done again on the same bike within the warranty window
class WarrantyCase(BaseModel):
    registration_id: int
    bike_id: int
    frame_number: str
    model: str
    repair_type_id: int
    repair_name: str
    mechanic_id: Optional[int] = None
    mechanic_name: Optional[str] = None
    completed_at: datetime
    original_completed_at: datetime
    days_since_original: int

class MechanicWarrantyStats(BaseModel):
    mechanic_id: Optional[int] = None
    mechanic_name: Optional[str] = None
    total: int
    repairs: Dict[str, int]

class RepairWarrantyStats(BaseModel):
    repair_name: str
    count: int

class WarrantyOverview(BaseModel):
    days: int
    window_days: int
    total: int
    cases: List[WarrantyCase]
    by_mechanic: List[MechanicWarrantyStats]
    by_repair_type: List[RepairWarrantyStats]
