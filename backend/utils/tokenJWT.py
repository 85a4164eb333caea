# utils/tokenJWT.py
import uuid
from datetime import datetime, timedelta

from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from models.revoked_token import RevokedToken

# Authorization scheme
bearer_scheme = HTTPBearer()

# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

# Decoded claims of a valid, non-revoked bearer token
def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> dict:
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise _credentials_exception()

    # Ensure subject and token id are present
    if payload.get("sub") is None or payload.get("jti") is None:
        raise _credentials_exception()

    revoked = db.query(RevokedToken).filter(RevokedToken.jti == payload["jti"]).first()
    if revoked:
        raise _credentials_exception()
    return payload

# Retrieve the currently authenticated account based on the JWT token
def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == payload["sub"]).first()
    if user is None:
        raise _credentials_exception()
    return user

# Mark a token as signed out until it would have expired anyway
def revoke_token(db: Session, payload: dict) -> None:
    exp = payload.get("exp")
    expires_at = datetime.utcfromtimestamp(exp) if exp else None
    db.add(RevokedToken(jti=payload["jti"], expires_at=expires_at))
    db.commit()
