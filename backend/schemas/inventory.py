# backend/schemas/inventory.py
from pydantic import BaseModel, Field
from typing import List, Optional

from models.bike import BikeModel

# "ok", "low" or "out"; unlimited items are always "ok"
StockStatus = str

class InventoryItemResponse(BaseModel):
    id: int
    repair_type_id: int
    name: str
    price: float
    points: int
    quantity: int
    min_stock_level: int
    purchase_price: float
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    unlimited_stock: bool
    # Grouped items are judged on the group total against the group minimum
    effective_quantity: int
    effective_min_level: int
    stock_status: StockStatus

class InventoryGroupResponse(BaseModel):
    id: int
    name: str
    quantity: int
    min_stock_level: int
    total_quantity: int
    item_count: int
    stock_status: StockStatus

class InventoryOverview(BaseModel):
    items: List[InventoryItemResponse]
    groups: List[InventoryGroupResponse]
    low_stock_item_ids: List[int]
    out_of_stock_item_ids: List[int]
    low_stock_group_ids: List[int]
    out_of_stock_group_ids: List[int]

# A new part: creates the price list entry and its stock row together
class InventoryProductCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(0, ge=0)
    points: int = Field(1, ge=0)
    models: List[BikeModel] = []
    quantity: int = Field(0, ge=0)
    min_stock_level: int = Field(5, ge=0)
    purchase_price: float = Field(0, ge=0)

class InventoryItemUpdate(BaseModel):
    # Negative counts are clamped to zero
    quantity: Optional[int] = None
    min_stock_level: Optional[int] = Field(None, ge=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    unlimited_stock: Optional[bool] = None

class StockAdjust(BaseModel):
    delta: int
    reason: Optional[str] = None

class GroupAssign(BaseModel):
    group_id: Optional[int] = None

class InventoryGroupCreate(BaseModel):
    name: str = Field(min_length=1)
    min_stock_level: int = Field(5, ge=0)

class InventoryGroupUpdate(BaseModel):
    name: Optional[str] = None
    quantity: Optional[int] = None
    min_stock_level: Optional[int] = Field(None, ge=0)
