# backend/routes/auth.py
import logging
import secrets
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from models.password_reset import PasswordResetToken
from schemas import user as schemas
from schemas.user import AuthState
from utils.audit import write_log, client_ip
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user, get_token_payload, revoke_token
from utils.validation import check_registration, check_login, check_password

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

UNKNOWN_USER = "Unknown User"


def _fail(db: Session, request: Request, *, action: str, state: AuthState, code: int, detail: str, user_id=None, meta=None):
    write_log(db, user_id=user_id, action=action, resource="auth", status="FAIL",
              ip=client_ip(request), meta={**(meta or {}), "state": state.value, "reason": detail})
    raise HTTPException(status_code=code, detail=detail)


# Register a new account
@router.post("/register", response_model=schemas.RegisterResponse)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    check_registration(payload.username, payload.email, payload.password)

    username = payload.username.strip()
    normalized_email = payload.email.strip().lower()
    meta = {"username": username, "email": normalized_email}

    # Display names are unique across accounts
    if db.query(User).filter(User.username == username).first():
        _fail(db, request, action="REGISTER", state=AuthState.REGISTRATION_FAILED,
              code=400, detail="Username already exists.", meta=meta)

    if db.query(User).filter(func.lower(User.email) == normalized_email).first():
        _fail(db, request, action="REGISTER", state=AuthState.REGISTRATION_FAILED,
              code=400, detail="Email already registered", meta=meta)

    new_user = User(username=username, email=normalized_email,
                    password_hash=get_password_hash(payload.password))
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same name
        db.rollback()
        logger.warning("Concurrent registration for username %r rejected", username)
        _fail(db, request, action="REGISTER", state=AuthState.REGISTRATION_FAILED,
              code=400, detail="Username already exists.", meta=meta)
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta=meta)
    logger.info("Registered account %s (%s)", new_user.id, username)

    return {"state": AuthState.REGISTERED, "account": new_user}


# Authenticate by username and issue a JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    check_login(payload.username, payload.password)

    username = payload.username.strip()
    db_user = db.query(User).filter(User.username == username).first()
    if not db_user:
        _fail(db, request, action="LOGIN", state=AuthState.AUTHENTICATION_FAILED,
              code=status.HTTP_401_UNAUTHORIZED, detail="Username not found.",
              meta={"username": username})

    if not verify_password(payload.password, db_user.password_hash):
        _fail(db, request, action="LOGIN", state=AuthState.AUTHENTICATION_FAILED,
              code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect password. Please try again.",
              user_id=db_user.id, meta={"username": username})

    access_token = create_access_token(data={"sub": db_user.id, "username": db_user.username})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"username": username})

    return {
        "state": AuthState.AUTHENTICATED,
        "access_token": access_token,
        "token_type": "bearer",
        "username": db_user.username,
    }


# Sign out: the presented token stops working
@router.post("/logout", response_model=schemas.LogoutResponse)
def logout(
    request: Request,
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db),
):
    revoke_token(db, payload)
    write_log(db, user_id=payload.get("sub"), action="LOGOUT", resource="auth",
              status="SUCCESS", ip=client_ip(request))
    return {"state": AuthState.IDLE}


# Start the forgot-password flow
@router.post("/password-reset", response_model=schemas.MessageResponse)
def request_password_reset(payload: schemas.PasswordResetRequest, request: Request, db: Session = Depends(get_db)):
    email = (payload.email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail="Please enter your email address")

    db_user = db.query(User).filter(func.lower(User.email) == email).first()
    if not db_user:
        _fail(db, request, action="PASSWORD_RESET", state=AuthState.IDLE,
              code=404, detail="No user found with this email.", meta={"email": email})

    token = secrets.token_urlsafe(32)
    db.add(PasswordResetToken(
        token=token,
        user_id=db_user.id,
        expires_at=datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
    ))
    db.commit()

    # There is no mail transport; the link goes to the log for the operator to forward
    base = settings.FRONTEND_URL or ""
    logger.info("Password reset requested for %s: %s/reset-password?token=%s", email, base.rstrip("/"), token)

    write_log(db, user_id=db_user.id, action="PASSWORD_RESET", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": email})
    return {"message": "Password reset email sent."}


# Finish the forgot-password flow with the emailed token
@router.post("/password-reset/confirm", response_model=schemas.MessageResponse)
def confirm_password_reset(payload: schemas.PasswordResetConfirm, request: Request, db: Session = Depends(get_db)):
    reset = db.query(PasswordResetToken).filter(PasswordResetToken.token == payload.token).first()
    if not reset or reset.used or reset.expires_at < datetime.utcnow():
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    check_password(payload.new_password)

    db_user = db.query(User).filter(User.id == reset.user_id).first()
    if not db_user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    db_user.password_hash = get_password_hash(payload.new_password)
    reset.used = True
    db.commit()

    write_log(db, user_id=db_user.id, action="PASSWORD_RESET_CONFIRM", resource="auth",
              status="SUCCESS", ip=client_ip(request))
    return {"message": "Password has been reset."}


# Current account details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return {
        "id": current_user.id,
        "username": current_user.username or UNKNOWN_USER,
        "email": current_user.email,
    }
