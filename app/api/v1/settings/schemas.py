from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class RateSettings(BaseModel):
    """Rates in effect for new approvals (percent)."""
    interest_rate: float
    processing_fee_rate: float


class LoanSettingsResponse(RateSettings):
    updated_by: Optional[UUID] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoanSettingsUpdate(BaseModel):
    interest_rate: float = Field(..., gt=0, description="Annual interest rate in percent")
    processing_fee_rate: Optional[float] = Field(None, ge=0, description="Processing fee in percent of principal. Unchanged if omitted.")


class LoanSettingsHistoryItem(BaseModel):
    id: UUID
    previous_interest_rate: Optional[float] = None
    previous_processing_fee_rate: Optional[float] = None
    interest_rate: float
    processing_fee_rate: float
    updated_by: Optional[UUID] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class LoanSettingsHistoryResponse(BaseModel):
    items: List[LoanSettingsHistoryItem]
    total: int
