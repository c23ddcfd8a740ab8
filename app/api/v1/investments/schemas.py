from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, Field


class InvestmentCreate(BaseModel):
    investment_name: str = Field(..., min_length=1, max_length=255)
    investment_type: str = Field("general", min_length=1, max_length=50)
    amount: float = Field(..., gt=0, description="Paid from the customer's savings balance")


class InvestmentResponse(BaseModel):
    id: UUID
    customer_id: UUID
    investment_name: str
    investment_type: str
    amount: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InvestmentListResponse(BaseModel):
    items: List[InvestmentResponse]
    total: int
