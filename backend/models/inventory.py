# backend/models/inventory.py
import uuid

from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


# InventoryItem
# A single user-owned inventory entry. The photo column holds the
# /uploads/... path of the stored image, or "" when the item has none.
class InventoryItem(Base):
    __tablename__ = "inventory"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, index=True)

    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False, default=0.0)

    photo = Column(String, nullable=False, default="")

    owner_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User")

    @property
    def line_total(self) -> float:
        return (self.price or 0.0) * (self.quantity or 0)
