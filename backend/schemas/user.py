import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


# Walk of a single sign-in or registration attempt; responses report the terminal state
class AuthState(str, enum.Enum):
    IDLE = "IDLE"
    AUTHENTICATING = "AUTHENTICATING"
    AUTHENTICATED = "AUTHENTICATED"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    REGISTERING = "REGISTERING"
    REGISTERED = "REGISTERED"
    REGISTRATION_FAILED = "REGISTRATION_FAILED"


# Schema for sign-in by username
class UserLogin(BaseModel):
    username: str = ""
    password: str = ""

# Schema for registration requests; checked field by field in the route
class UserCreate(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""

# Output schema for account details
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str

class RegisterResponse(BaseModel):
    state: AuthState
    account: UserResponse

# Schema for JWT authentication token response
class Token(BaseModel):
    state: AuthState = AuthState.AUTHENTICATED
    access_token: str
    token_type: str = "bearer"
    username: Optional[str] = None

class LogoutResponse(BaseModel):
    state: AuthState = AuthState.IDLE

# Schemas for the forgot-password flow
class PasswordResetRequest(BaseModel):
    email: str = ""

class PasswordResetConfirm(BaseModel):
    token: str = ""
    new_password: str = ""

class MessageResponse(BaseModel):
    message: str
