from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.withdrawals.schemas import (
    WithdrawalCreate,
    WithdrawalListResponse,
    WithdrawalResponse,
    WithdrawalStatusUpdate,
)
from app.api.v1.withdrawals.service import WithdrawalService
from app.core.deps import get_db, get_current_customer, get_current_active_admin_user
from app.models.admin import Admin
from app.models.customer import Customer
from app.models.enums import WithdrawalStatus

router = APIRouter()


@router.post(
    "/",
    response_model=WithdrawalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request withdrawal",
    description="Request a payout from savings. The amount is reserved from the savings balance immediately.",
    tags=["customer-withdrawals"],
)
async def request_withdrawal(
    data: WithdrawalCreate,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    withdrawal = await WithdrawalService(db).request_withdrawal(current_customer, data)
    return WithdrawalResponse.model_validate(withdrawal)


@router.get(
    "/mine",
    response_model=WithdrawalListResponse,
    status_code=status.HTTP_200_OK,
    summary="My withdrawals",
    tags=["customer-withdrawals"],
)
async def get_my_withdrawals(
    status_filter: Optional[WithdrawalStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    items, total = await WithdrawalService(db).list_withdrawals(
        skip=skip,
        limit=limit,
        status=status_filter.value if status_filter else None,
        customer_id=current_customer.id,
    )
    return WithdrawalListResponse(items=[WithdrawalResponse.model_validate(w) for w in items], total=total)


@router.get(
    "/",
    response_model=WithdrawalListResponse,
    status_code=status.HTTP_200_OK,
    summary="Get all withdrawals",
    description="Withdrawal requests, optionally filtered by status or customer. Admin only.",
    tags=["admin-withdrawals"],
)
async def get_withdrawals(
    status_filter: Optional[WithdrawalStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await WithdrawalService(db).list_withdrawals(
        skip=skip,
        limit=limit,
        status=status_filter.value if status_filter else None,
        customer_id=customer_id,
    )
    return WithdrawalListResponse(items=[WithdrawalResponse.model_validate(w) for w in items], total=total)


@router.get(
    "/{withdrawal_id}",
    response_model=WithdrawalResponse,
    status_code=status.HTTP_200_OK,
    summary="Get withdrawal",
    tags=["admin-withdrawals"],
)
async def get_withdrawal(
    withdrawal_id: UUID,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    withdrawal = await WithdrawalService(db).get_withdrawal(withdrawal_id)
    return WithdrawalResponse.model_validate(withdrawal)


@router.patch(
    "/{withdrawal_id}",
    response_model=WithdrawalResponse,
    status_code=status.HTTP_200_OK,
    summary="Update withdrawal status",
    description="Approve, process, complete or reject a withdrawal. Rejection returns the amount to savings.",
    tags=["admin-withdrawals"],
)
async def update_withdrawal_status(
    withdrawal_id: UUID,
    data: WithdrawalStatusUpdate,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    withdrawal = await WithdrawalService(db).update_status(withdrawal_id, data, current_admin.id)
    return WithdrawalResponse.model_validate(withdrawal)
