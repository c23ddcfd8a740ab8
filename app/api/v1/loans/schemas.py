from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.core.loan_schedule import ScheduleEntry


class LoanApplyRequest(BaseModel):
    principal_amount: float = Field(..., gt=0, description="Amount requested")
    duration_months: int = Field(..., gt=0, description="Repayment period in months")
    purpose: str = Field(..., min_length=1, max_length=500)
    borrower_full_name: str = Field(..., min_length=1)
    borrower_phone: str = Field(..., min_length=1)
    borrower_email: EmailStr
    guarantor_id: Optional[UUID] = Field(None, description="Customer who guarantees the loan")
    guarantor_coverage: float = Field(0.0, ge=0, description="Share of the loan covered by the guarantor (percent)")


class LoanRejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ProcessingFeeUpdate(BaseModel):
    processing_fee_paid: bool


class LoanPaymentResponse(BaseModel):
    id: UUID
    amount: float
    payment_type: str
    description: Optional[str] = None
    repayment_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LoanResponse(BaseModel):
    id: UUID
    customer_id: UUID
    principal_amount: float
    duration_months: int
    purpose: str
    borrower_full_name: str
    borrower_phone: str
    borrower_email: str
    guarantor_id: Optional[UUID] = None
    guarantor_coverage: float = 0.0
    status: str
    # Present once approved
    interest_rate: Optional[float] = None
    processing_fee_rate: Optional[float] = None
    processing_fee: Optional[float] = None
    interest_amount: Optional[float] = None
    total_loan_amount: Optional[float] = None
    monthly_installment: Optional[float] = None
    remaining_balance: Optional[float] = None
    paid_amount: float = 0.0
    liquidation_discount: float = 0.0
    processing_fee_paid: bool = False
    approved_at: Optional[datetime] = None
    approved_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LoanDetailResponse(LoanResponse):
    payments: List[LoanPaymentResponse] = []


class LoanListResponse(BaseModel):
    items: List[LoanResponse]
    total: int


class LoanScheduleResponse(BaseModel):
    loan_id: UUID
    total_loan_amount: float
    monthly_installment: float
    paid_amount: float
    remaining_balance: float
    entries: List[ScheduleEntry]
