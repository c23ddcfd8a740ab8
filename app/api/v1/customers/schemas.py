from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.api.v1.investments.schemas import InvestmentResponse
from app.api.v1.loans.schemas import LoanResponse
from app.models.enums import MembershipStatus


class CreateCustomerRequest(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    profession: Optional[str] = None
    membership_status: MembershipStatus = MembershipStatus.approved


class CustomerResponse(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    profession: Optional[str] = None
    membership_status: str
    savings_balance: float
    total_loans: float
    total_auctions: int
    created_at: datetime

    class Config:
        from_attributes = True


class GuarantorStats(BaseModel):
    total_savings: float
    total_investment: float
    has_active_loans: bool
    investments_count: int


class CustomerWithEligibility(CustomerResponse):
    stats: GuarantorStats
    is_eligible_guarantor: bool
    eligibility_score: int


class CustomerListResponse(BaseModel):
    items: List[CustomerWithEligibility]
    total: int


class CustomerDetailResponse(CustomerResponse):
    loans: List[LoanResponse] = []
    investments: List[InvestmentResponse] = []


class CustomerLogin(BaseModel):
    email: EmailStr
    password: str


class CustomerLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    customer: CustomerResponse


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class MembershipStatusUpdate(BaseModel):
    membership_status: MembershipStatus


class LedgerEntryResponse(BaseModel):
    id: UUID
    account: str
    amount: float
    entry_type: str
    reference_id: Optional[UUID] = None
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerLedgerResponse(BaseModel):
    customer_id: UUID
    savings_balance: float
    total_loans: float
    entries: List[LedgerEntryResponse]
    total: int


class ReconcileResponse(BaseModel):
    customer_id: UUID
    stored_savings_balance: float
    stored_total_loans: float
    savings_balance: float
    total_loans: float
    drift_detected: bool
