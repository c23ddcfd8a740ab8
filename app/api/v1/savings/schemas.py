from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SavingCreate(BaseModel):
    amount: float = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=500)


class DirectDepositCreate(SavingCreate):
    """Deposit recorded by an admin; credited immediately."""
    customer_id: UUID


class SavingReview(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)


class SavingResponse(BaseModel):
    id: UUID
    customer_id: UUID
    amount: float
    status: str
    notes: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SavingListResponse(BaseModel):
    items: List[SavingResponse]
    total: int
