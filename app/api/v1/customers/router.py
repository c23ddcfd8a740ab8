from datetime import timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.customers.schemas import (
    ChangePasswordRequest,
    CreateCustomerRequest,
    CustomerDetailResponse,
    CustomerLedgerResponse,
    CustomerListResponse,
    CustomerLogin,
    CustomerLoginResponse,
    CustomerResponse,
    LedgerEntryResponse,
    MembershipStatusUpdate,
    ReconcileResponse,
)
from app.api.v1.customers.service import CustomerService
from app.api.v1.investments.schemas import InvestmentResponse
from app.api.v1.loans.schemas import LoanResponse
from app.core.config import settings
from app.core.deps import CUSTOMER_ROLE, get_db, get_current_customer, get_current_active_admin_user
from app.core.exceptions import AppException
from app.core.security import create_access_token
from app.models.admin import Admin
from app.models.customer import Customer

router = APIRouter()


# ============================================================
# CUSTOMER ENDPOINTS (Customer-facing, some require authentication)
# ============================================================

@router.post(
    "/login",
    response_model=CustomerLoginResponse,
    summary="Customer login",
    description="Authenticate customer and receive access token",
    tags=["customer-auth"]
)
async def customer_login(
    customer_login_data: CustomerLogin,
    db: AsyncSession = Depends(get_db),
):
    customer_service = CustomerService(db)
    customer = await customer_service.authenticate_customer(customer_login_data)

    if not customer:
        AppException().raise_401("Incorrect email or password, or account is suspended")

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={
            "sub": str(customer.id),
            "role": CUSTOMER_ROLE
        },
        expires_delta=access_token_expires,
    )
    return CustomerLoginResponse(
        access_token=access_token,
        customer=CustomerResponse.model_validate(customer),
    )


@router.get(
    "/me",
    response_model=CustomerResponse,
    status_code=status.HTTP_200_OK,
    summary="Get customer profile",
    description="Current customer with savings balance, loan total and auction count.",
    tags=["customer"]
)
async def get_my_profile(
    current_customer: Customer = Depends(get_current_customer),
):
    return CustomerResponse.model_validate(current_customer)


@router.post(
    "/me/change-password",
    status_code=status.HTTP_200_OK,
    summary="Change password",
    tags=["customer-auth"]
)
async def change_password(
    password_data: ChangePasswordRequest,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    await CustomerService(db).change_password(current_customer, password_data)
    return {"message": "Password changed successfully"}


@router.get(
    "/guarantors",
    response_model=CustomerListResponse,
    status_code=status.HTTP_200_OK,
    summary="Find a guarantor",
    description="Approved members other than you, with their guarantor eligibility score.",
    tags=["customer"]
)
async def list_guarantors(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search by name, email or phone"),
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    items, total = await CustomerService(db).list_customers(
        skip=skip,
        limit=limit,
        search=search,
        exclude_id=current_customer.id,
        approved_only=True,
    )
    return CustomerListResponse(items=items, total=total)


# ============================================================
# ADMIN ENDPOINTS (Requires admin authentication)
# ============================================================

@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new customer",
    description="Create a member account. A generated password is emailed to the customer.",
    tags=["admin-customers"],
)
async def create_customer(
    customer_data: CreateCustomerRequest,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    new_customer = await CustomerService(db).create_customer(customer_data)
    return CustomerResponse.model_validate(new_customer)


@router.get(
    "/",
    response_model=CustomerListResponse,
    status_code=status.HTTP_200_OK,
    summary="Get all customers",
    description="Customers with guarantor eligibility stats. Admin only.",
    tags=["admin-customers"],
)
async def get_all_customers(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records to return"),
    search: Optional[str] = Query(None, description="Search by first name, last name, email or phone"),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await CustomerService(db).list_customers(skip=skip, limit=limit, search=search)
    return CustomerListResponse(items=items, total=total)


@router.get(
    "/{customer_id}",
    response_model=CustomerDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="Get customer",
    description="Customer with loans and investments. Admin only.",
    tags=["admin-customers"],
)
async def get_customer_by_id(
    customer_id: UUID,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    customer, loans, investments = await CustomerService(db).get_customer_detail(customer_id)
    return CustomerDetailResponse(
        **CustomerResponse.model_validate(customer).model_dump(),
        loans=[LoanResponse.model_validate(l) for l in loans],
        investments=[InvestmentResponse.model_validate(i) for i in investments],
    )


@router.patch(
    "/{customer_id}/membership",
    response_model=CustomerResponse,
    status_code=status.HTTP_200_OK,
    summary="Set membership status",
    description="Approve or suspend a member. Suspended members cannot log in.",
    tags=["admin-customers"],
)
async def update_membership_status(
    customer_id: UUID,
    data: MembershipStatusUpdate,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    customer = await CustomerService(db).update_membership_status(customer_id, data.membership_status)
    return CustomerResponse.model_validate(customer)


@router.get(
    "/{customer_id}/ledger",
    response_model=CustomerLedgerResponse,
    status_code=status.HTTP_200_OK,
    summary="Customer ledger",
    description="Every balance change of the customer, newest first. Admin only.",
    tags=["admin-customers"],
)
async def get_customer_ledger(
    customer_id: UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    customer, entries, total = await CustomerService(db).get_ledger(customer_id, skip=skip, limit=limit)
    return CustomerLedgerResponse(
        customer_id=customer.id,
        savings_balance=customer.savings_balance,
        total_loans=customer.total_loans,
        entries=[LedgerEntryResponse.model_validate(e) for e in entries],
        total=total,
    )


@router.post(
    "/{customer_id}/reconcile",
    response_model=ReconcileResponse,
    status_code=status.HTTP_200_OK,
    summary="Reconcile customer balances",
    description="Recompute savings balance and loan total from the ledger and report any drift. Admin only.",
    tags=["admin-customers"],
)
async def reconcile_customer_balances(
    customer_id: UUID,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    report = await CustomerService(db).reconcile(customer_id)
    return ReconcileResponse(**report)
