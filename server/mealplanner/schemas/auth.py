from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    two_factor_code: Optional[str] = None


class LoginUser(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user: Optional[LoginUser] = None


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str


class TwoFactorSetupResponse(BaseModel):
    secret: str
    provisioning_uri: str
    message: str


class TwoFactorVerifyRequest(BaseModel):
    email: EmailStr
    code: str


class TwoFactorVerifyResponse(BaseModel):
    verified: bool
    message: str


class WhoAmIResponse(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: str
    two_factor_enabled: bool = False
