# user_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional


# ---------------------------
# Create & Auth
# ---------------------------
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class PasswordLogin(BaseModel):
    email: EmailStr
    password: str


class GithubLogin(BaseModel):
    code: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str


# ---------------------------
# Password recovery
# ---------------------------
class PasswordRecoverRequest(BaseModel):
    email: EmailStr


class PasswordReset(BaseModel):
    code: str
    password: str = Field(..., min_length=6)


# ---------------------------
# Read
# ---------------------------
class UserRead(BaseModel):
    id: str
    name: Optional[str] = None
    email: EmailStr
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    user: UserRead


class UserSummary(BaseModel):
    """Compact author/owner reference embedded in other payloads."""
    id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
