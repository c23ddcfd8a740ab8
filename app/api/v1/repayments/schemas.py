from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class RepaymentCreate(BaseModel):
    loan_id: UUID
    amount: float = Field(..., gt=0)
    proof_image: Optional[str] = Field(None, max_length=1000, description="URL of the uploaded proof of payment")


class RepaymentReview(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)


class RepaymentResponse(BaseModel):
    id: UUID
    loan_id: UUID
    customer_id: UUID
    amount: float
    proof_image: Optional[str] = None
    status: str
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    review_notes: Optional[str] = None

    class Config:
        from_attributes = True


class RepaymentListResponse(BaseModel):
    items: List[RepaymentResponse]
    total: int


class RepaymentApprovalResponse(BaseModel):
    repayment: RepaymentResponse
    loan_status: str
    paid_amount: float
    remaining_balance: float
    is_fully_paid: bool
