# schemas/reports.py
from typing import List
from pydantic import BaseModel, ConfigDict

# One row of the inventory report
class ReportItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    quantity: int
    price: float
    line_total: float
    photo: str = ""

class ReportSummary(BaseModel):
    items: List[ReportItem]
    total_items: int
    total_price: float
