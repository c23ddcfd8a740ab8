from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.savings.schemas import (
    DirectDepositCreate,
    SavingCreate,
    SavingListResponse,
    SavingResponse,
    SavingReview,
)
from app.api.v1.savings.service import SavingService
from app.core.deps import get_db, get_current_customer, get_current_active_admin_user
from app.models.admin import Admin
from app.models.customer import Customer
from app.models.enums import SavingStatus

router = APIRouter()


@router.post(
    "/",
    response_model=SavingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit savings deposit",
    description="Declare a deposit. The balance is credited once an admin verifies it.",
    tags=["customer-savings"],
)
async def submit_saving(
    data: SavingCreate,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    saving = await SavingService(db).submit_saving(current_customer, data)
    return SavingResponse.model_validate(saving)


@router.get(
    "/mine",
    response_model=SavingListResponse,
    status_code=status.HTTP_200_OK,
    summary="My savings deposits",
    tags=["customer-savings"],
)
async def get_my_savings(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    items, total = await SavingService(db).list_savings(skip=skip, limit=limit, customer_id=current_customer.id)
    return SavingListResponse(items=[SavingResponse.model_validate(s) for s in items], total=total)


@router.get(
    "/",
    response_model=SavingListResponse,
    status_code=status.HTTP_200_OK,
    summary="Get all savings",
    description="Savings deposits, optionally filtered by status or customer. Admin only.",
    tags=["admin-savings"],
)
async def get_savings(
    status_filter: Optional[SavingStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await SavingService(db).list_savings(
        skip=skip,
        limit=limit,
        status=status_filter.value if status_filter else None,
        customer_id=customer_id,
    )
    return SavingListResponse(items=[SavingResponse.model_validate(s) for s in items], total=total)


@router.post(
    "/deposit",
    response_model=SavingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Direct deposit",
    description="Record a verified deposit for a customer and credit it immediately. Admin only.",
    tags=["admin-savings"],
)
async def direct_deposit(
    data: DirectDepositCreate,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    saving = await SavingService(db).direct_deposit(data, current_admin.id)
    return SavingResponse.model_validate(saving)


@router.post(
    "/{saving_id}/verify",
    response_model=SavingResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify savings deposit",
    tags=["admin-savings"],
)
async def verify_saving(
    saving_id: UUID,
    data: Optional[SavingReview] = None,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    saving = await SavingService(db).verify_saving(saving_id, current_admin.id, data.notes if data else None)
    return SavingResponse.model_validate(saving)


@router.post(
    "/{saving_id}/reject",
    response_model=SavingResponse,
    status_code=status.HTTP_200_OK,
    summary="Reject savings deposit",
    tags=["admin-savings"],
)
async def reject_saving(
    saving_id: UUID,
    data: Optional[SavingReview] = None,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    saving = await SavingService(db).reject_saving(saving_id, current_admin.id, data.notes if data else None)
    return SavingResponse.model_validate(saving)
