from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.loans.schemas import (
    LoanApplyRequest,
    LoanDetailResponse,
    LoanListResponse,
    LoanRejectRequest,
    LoanResponse,
    LoanScheduleResponse,
    ProcessingFeeUpdate,
)
from app.api.v1.loans.service import LoanService
from app.api.v1.settings.service import RateSettingsService, get_rate_settings_reader
from app.core.deps import get_db, get_current_customer, get_current_active_admin_user
from app.models.admin import Admin
from app.models.customer import Customer
from app.models.enums import LoanStatus

router = APIRouter()


def _schedule_response(loan, entries) -> LoanScheduleResponse:
    return LoanScheduleResponse(
        loan_id=loan.id,
        total_loan_amount=loan.total_loan_amount,
        monthly_installment=loan.monthly_installment,
        paid_amount=loan.paid_amount,
        remaining_balance=loan.remaining_balance,
        entries=entries,
    )


# ============================================================
# CUSTOMER ENDPOINTS
# ============================================================

@router.post(
    "/",
    response_model=LoanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply for a loan",
    description="Submit a loan application. It stays pending until an admin approves or rejects it.",
    tags=["customer-loans"],
)
async def apply_for_loan(
    data: LoanApplyRequest,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService(db).apply_for_loan(current_customer, data)
    return LoanResponse.model_validate(loan)


@router.get(
    "/mine",
    response_model=LoanListResponse,
    status_code=status.HTTP_200_OK,
    summary="My loans",
    tags=["customer-loans"],
)
async def get_my_loans(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    loans, total = await LoanService(db).list_loans(skip=skip, limit=limit, customer_id=current_customer.id)
    return LoanListResponse(items=[LoanResponse.model_validate(l) for l in loans], total=total)


@router.get(
    "/mine/{loan_id}",
    response_model=LoanDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="My loan detail",
    description="Loan with its payment history.",
    tags=["customer-loans"],
)
async def get_my_loan(
    loan_id: UUID,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService(db).get_customer_loan(loan_id, current_customer.id)
    return LoanDetailResponse.model_validate(loan)


@router.get(
    "/mine/{loan_id}/schedule",
    response_model=LoanScheduleResponse,
    status_code=status.HTTP_200_OK,
    summary="My repayment schedule",
    tags=["customer-loans"],
)
async def get_my_loan_schedule(
    loan_id: UUID,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    service = LoanService(db)
    await service.get_customer_loan(loan_id, current_customer.id)
    loan, entries = await service.get_schedule(loan_id)
    return _schedule_response(loan, entries)


@router.post(
    "/mine/{loan_id}/processing-fee",
    response_model=LoanResponse,
    status_code=status.HTTP_200_OK,
    summary="Pay processing fee",
    description="Pay the processing fee of an approved loan. The loan becomes active.",
    tags=["customer-loans"],
)
async def pay_processing_fee(
    loan_id: UUID,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService(db).pay_processing_fee(loan_id, current_customer.id)
    return LoanResponse.model_validate(loan)


# ============================================================
# ADMIN ENDPOINTS (Requires admin authentication)
# ============================================================

@router.get(
    "/",
    response_model=LoanListResponse,
    status_code=status.HTTP_200_OK,
    summary="Get all loans",
    description="List loans, optionally filtered by status or borrower. Admin only.",
    tags=["admin-loans"],
)
async def get_all_loans(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    status_filter: Optional[LoanStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = Query(None),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    loans, total = await LoanService(db).list_loans(
        skip=skip,
        limit=limit,
        status=status_filter.value if status_filter else None,
        customer_id=customer_id,
    )
    return LoanListResponse(items=[LoanResponse.model_validate(l) for l in loans], total=total)


@router.get(
    "/{loan_id}",
    response_model=LoanDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="Get loan",
    tags=["admin-loans"],
)
async def get_loan(
    loan_id: UUID,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService(db).get_loan(loan_id, with_payments=True)
    return LoanDetailResponse.model_validate(loan)


@router.post(
    "/{loan_id}/approve",
    response_model=LoanResponse,
    status_code=status.HTTP_200_OK,
    summary="Approve loan",
    description="Price a pending loan with the current rates, freeze the terms and email the borrower.",
    tags=["admin-loans"],
)
async def approve_loan(
    loan_id: UUID,
    current_admin: Admin = Depends(get_current_active_admin_user),
    rate_reader: RateSettingsService = Depends(get_rate_settings_reader),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService(db, rate_reader=rate_reader).approve_loan(loan_id, current_admin.id)
    return LoanResponse.model_validate(loan)


@router.post(
    "/{loan_id}/reject",
    response_model=LoanResponse,
    status_code=status.HTTP_200_OK,
    summary="Reject loan",
    tags=["admin-loans"],
)
async def reject_loan(
    loan_id: UUID,
    data: Optional[LoanRejectRequest] = None,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService(db).reject_loan(loan_id, current_admin.id, data.reason if data else None)
    return LoanResponse.model_validate(loan)


@router.post(
    "/{loan_id}/liquidate",
    response_model=LoanResponse,
    status_code=status.HTTP_200_OK,
    summary="Liquidate loan",
    description="Close an approved loan early, crediting half of the remaining balance.",
    tags=["admin-loans"],
)
async def liquidate_loan(
    loan_id: UUID,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService(db).liquidate_loan(loan_id, current_admin.id)
    return LoanResponse.model_validate(loan)


@router.patch(
    "/{loan_id}/processing-fee",
    response_model=LoanResponse,
    status_code=status.HTTP_200_OK,
    summary="Set processing fee status",
    description="Mark the processing fee as paid or unpaid. Does not change the loan status.",
    tags=["admin-loans"],
)
async def update_processing_fee(
    loan_id: UUID,
    data: ProcessingFeeUpdate,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService(db).set_processing_fee_paid(loan_id, data.processing_fee_paid)
    return LoanResponse.model_validate(loan)


@router.post(
    "/{loan_id}/resend-email",
    status_code=status.HTTP_200_OK,
    summary="Resend approval email",
    tags=["admin-loans"],
)
async def resend_approval_email(
    loan_id: UUID,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    delivered = await LoanService(db).resend_approval_email(loan_id)
    if not delivered:
        return {"message": "Approval email could not be delivered", "delivered": False}
    return {"message": "Approval email sent", "delivered": True}


@router.get(
    "/{loan_id}/schedule",
    response_model=LoanScheduleResponse,
    status_code=status.HTTP_200_OK,
    summary="Repayment schedule",
    description="Monthly installments with due dates for an approved loan.",
    tags=["admin-loans"],
)
async def get_loan_schedule(
    loan_id: UUID,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    loan, entries = await LoanService(db).get_schedule(loan_id)
    return _schedule_response(loan, entries)
