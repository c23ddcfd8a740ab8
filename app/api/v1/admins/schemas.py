from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.models.enums import Role


class AdminBase(BaseModel):
    full_name: Optional[str] = None
    email: EmailStr
    phone: Optional[str] = None
    role: Role = Role.admin # Default role is admin
    is_active: bool = True


class AdminCreate(AdminBase):
    password: str = Field(..., min_length=8)


class AdminResponse(AdminBase):
    id: UUID

    class Config:
        from_attributes = True


class AdminProfileResponse(BaseModel):
    """Admin profile for GET (no sensitive data)."""
    id: UUID
    full_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
