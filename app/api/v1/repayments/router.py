from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.repayments.schemas import (
    RepaymentApprovalResponse,
    RepaymentCreate,
    RepaymentListResponse,
    RepaymentResponse,
    RepaymentReview,
)
from app.api.v1.repayments.service import RepaymentService
from app.core.deps import get_db, get_current_customer, get_current_active_admin_user
from app.models.admin import Admin
from app.models.customer import Customer
from app.models.enums import LoanStatus, RepaymentStatus

router = APIRouter()


@router.post(
    "/",
    response_model=RepaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit repayment",
    description="Submit a loan repayment with a proof of payment URL. It is applied once an admin approves it.",
    tags=["customer-repayments"],
)
async def submit_repayment(
    data: RepaymentCreate,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    repayment = await RepaymentService(db).submit_repayment(current_customer, data)
    return RepaymentResponse.model_validate(repayment)


@router.get(
    "/mine",
    response_model=RepaymentListResponse,
    status_code=status.HTTP_200_OK,
    summary="My repayments",
    tags=["customer-repayments"],
)
async def get_my_repayments(
    status_filter: Optional[RepaymentStatus] = Query(None, alias="status"),
    loan_id: Optional[UUID] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    items, total = await RepaymentService(db).list_repayments(
        skip=skip,
        limit=limit,
        status=status_filter.value if status_filter else None,
        customer_id=current_customer.id,
        loan_id=loan_id,
    )
    return RepaymentListResponse(items=[RepaymentResponse.model_validate(r) for r in items], total=total)


@router.get(
    "/",
    response_model=RepaymentListResponse,
    status_code=status.HTTP_200_OK,
    summary="Repayments for review",
    description="Repayments by status (pending_review by default). Admin only.",
    tags=["admin-repayments"],
)
async def get_repayments(
    status_filter: RepaymentStatus = Query(RepaymentStatus.pending_review, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await RepaymentService(db).list_repayments(skip=skip, limit=limit, status=status_filter.value)
    return RepaymentListResponse(items=[RepaymentResponse.model_validate(r) for r in items], total=total)


@router.post(
    "/{repayment_id}/approve",
    response_model=RepaymentApprovalResponse,
    status_code=status.HTTP_200_OK,
    summary="Approve repayment",
    tags=["admin-repayments"],
)
async def approve_repayment(
    repayment_id: UUID,
    data: Optional[RepaymentReview] = None,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    repayment, loan = await RepaymentService(db).approve_repayment(
        repayment_id, current_admin.id, data.notes if data else None
    )
    return RepaymentApprovalResponse(
        repayment=RepaymentResponse.model_validate(repayment),
        loan_status=loan.status,
        paid_amount=loan.paid_amount,
        remaining_balance=loan.remaining_balance,
        is_fully_paid=loan.status == LoanStatus.completed.value,
    )


@router.post(
    "/{repayment_id}/reject",
    response_model=RepaymentResponse,
    status_code=status.HTTP_200_OK,
    summary="Reject repayment",
    tags=["admin-repayments"],
)
async def reject_repayment(
    repayment_id: UUID,
    data: Optional[RepaymentReview] = None,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    repayment = await RepaymentService(db).reject_repayment(
        repayment_id, current_admin.id, data.notes if data else None
    )
    return RepaymentResponse.model_validate(repayment)
