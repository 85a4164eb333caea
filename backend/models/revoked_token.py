# backend/models/revoked_token.py
from sqlalchemy import Column, Integer, String, DateTime
from database import Base

# Access tokens invalidated by sign-out, keyed by their jti claim
class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=True)
