from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AuctionCreate(BaseModel):
    investment_id: UUID
    auction_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    reserve_price: float = Field(..., gt=0, description="Lowest acceptable bid")
    duration_days: int = Field(..., gt=0, le=365, description="Auction length in days")


class AuctionUpdate(BaseModel):
    """Editable fields of an auction without bids. Status changes go through close/cancel."""
    auction_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    reserve_price: Optional[float] = Field(None, gt=0)
    duration_days: Optional[int] = Field(None, gt=0, le=365)

    class Config:
        extra = "forbid"


class BidCreate(BaseModel):
    amount: float = Field(..., gt=0)


class BidResponse(BaseModel):
    id: UUID
    auction_id: UUID
    customer_id: UUID
    amount: float
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuctionResponse(BaseModel):
    id: UUID
    customer_id: UUID
    investment_id: UUID
    investment_name: Optional[str] = None
    auction_name: str
    description: Optional[str] = None
    reserve_price: float
    current_bid: float
    duration_days: int
    status: str
    start_date: datetime
    end_date: datetime
    winning_bid_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuctionDetailResponse(BaseModel):
    auction: AuctionResponse
    bids: List[BidResponse]


class AuctionListResponse(BaseModel):
    items: List[AuctionResponse]
    total: int


class SettlementResponse(BaseModel):
    """Outcome of closing or settling an auction."""
    auction: AuctionResponse
    winning_bid: Optional[BidResponse] = None
    refunded_bids: int = 0


class ExpiredSettlementSummary(BaseModel):
    completed: int
    cancelled: int
    conflicts: int
