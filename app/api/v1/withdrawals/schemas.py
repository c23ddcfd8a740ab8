from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.enums import WithdrawalStatus


class WithdrawalCreate(BaseModel):
    amount: float = Field(..., gt=0)
    account_name: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=1, max_length=50)
    routing_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=500)


class WithdrawalStatusUpdate(BaseModel):
    status: WithdrawalStatus
    admin_notes: Optional[str] = Field(None, max_length=500)


class WithdrawalResponse(BaseModel):
    id: UUID
    customer_id: UUID
    amount: float
    account_name: str
    bank_name: str
    account_number: str
    routing_number: Optional[str] = None
    notes: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    processed_at: Optional[datetime] = None
    processed_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WithdrawalListResponse(BaseModel):
    items: List[WithdrawalResponse]
    total: int
