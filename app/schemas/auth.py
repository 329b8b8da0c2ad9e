# app/schemas/auth.py

from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.enums import UserRole


# ──────────────── Sign Up / Login ────────────────
class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    id: int
    username: str
    role: UserRole


class TokenResponse(BaseModel):
    success: bool = True
    message: str
    user: UserOut
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


# ─────────────────────────────────────────
# 🔄 Refresh & Logout Schemas
# ─────────────────────────────────────────

class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class RefreshResponse(BaseModel):
    success: bool = True
    message: str = "Token refreshed successfully"
    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str
