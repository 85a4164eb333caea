# backend/models/users.py
import uuid

from sqlalchemy import Column, String, DateTime, func
from database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


# Represents an account: an opaque id, a unique display name and login credentials
class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_id)
    username = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
