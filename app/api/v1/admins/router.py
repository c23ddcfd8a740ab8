from datetime import timedelta

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.admins.schemas import (
    AdminCreate,
    AdminResponse,
    AdminLogin,
    AdminProfileResponse,
    TokenResponse,
)
from app.api.v1.admins.service import AdminService
from app.core.deps import get_db, get_current_active_admin_user
from app.core.security import create_access_token
from app.core.exceptions import AppException
from app.core.config import settings
from app.models.admin import Admin

router = APIRouter()


@router.post(
    "/",
    response_model=AdminResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new admin user",
    description="Only a super admin can create admins.",
)
async def create_admin(
    admin_data: AdminCreate,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    if not current_admin.is_super_admin:
        AppException().raise_403("Only a super admin can create admins")
    admin_service = AdminService(db)
    new_admin = await admin_service.create_admin(admin_data)
    return AdminResponse.model_validate(new_admin)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Admin login",
)
async def admin_login(
    admin_login_data: AdminLogin,
    db: AsyncSession = Depends(get_db),
):
    admin_service = AdminService(db)
    admin = await admin_service.authenticate_admin(admin_login_data)
    if not admin:
        AppException().raise_401("Incorrect email or password")
    if not admin.is_active:
        AppException().raise_403("Admin account is inactive")
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={
            "sub": str(admin.id),
            "role": admin.role
        },
        expires_delta=access_token_expires,
    )
    return TokenResponse(access_token=access_token)


@router.get(
    "/profile",
    response_model=AdminProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get admin profile",
    description="Get current authenticated admin profile.",
    tags=["admin-profile"],
)
async def get_admin_profile(
    current_admin: Admin = Depends(get_current_active_admin_user),
):
    return AdminProfileResponse.model_validate(current_admin)
