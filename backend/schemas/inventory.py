# backend/schemas/inventory.py
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Full inventory item representation
class InventoryItemOut(ORMBase):
    id: str
    name: str
    quantity: int
    price: float
    photo: str = ""
    owner_id: str
    line_total: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Result of a create/update call: the stored item plus the user-facing message
class InventoryItemResult(ORMBase):
    message: str
    item: InventoryItemOut


class InventoryList(ORMBase):
    items: List[InventoryItemOut]
    total: int
    search: Optional[str] = None
    sort_by: str
    order: str
