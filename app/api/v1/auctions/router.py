from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.auctions.schemas import (
    AuctionCreate,
    AuctionDetailResponse,
    AuctionListResponse,
    AuctionResponse,
    AuctionUpdate,
    BidCreate,
    BidResponse,
    ExpiredSettlementSummary,
    SettlementResponse,
)
from app.api.v1.auctions.service import AuctionService
from app.core.deps import get_db, get_current_customer, get_current_active_admin_user
from app.models.admin import Admin
from app.models.customer import Customer
from app.models.enums import AuctionStatus

router = APIRouter()


# ============================================================
# ADMIN ENDPOINTS
# ============================================================

@router.post(
    "/settle-expired",
    response_model=ExpiredSettlementSummary,
    status_code=status.HTTP_200_OK,
    summary="Settle expired auctions",
    description="Run expired auction settlement now instead of waiting for the background loop. Admin only.",
    tags=["admin-auctions"],
)
async def settle_expired_auctions(
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    summary = await AuctionService(db).settle_expired()
    return ExpiredSettlementSummary(**summary)


# ============================================================
# CUSTOMER ENDPOINTS
# ============================================================

@router.post(
    "/",
    response_model=AuctionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create auction",
    description="Auction one of your investments for a number of days with a reserve price.",
    tags=["auctions"],
)
async def create_auction(
    data: AuctionCreate,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    auction = await AuctionService(db).create_auction(current_customer, data)
    return AuctionResponse.model_validate(auction)


@router.get(
    "/",
    response_model=AuctionListResponse,
    status_code=status.HTTP_200_OK,
    summary="List auctions",
    description="Auctions by status (active by default). Set mine=true for your own auctions.",
    tags=["auctions"],
)
async def list_auctions(
    status_filter: Optional[AuctionStatus] = Query(AuctionStatus.active, alias="status"),
    mine: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    items, total = await AuctionService(db).list_auctions(
        skip=skip,
        limit=limit,
        status=status_filter.value if status_filter else None,
        customer_id=current_customer.id if mine else None,
    )
    return AuctionListResponse(items=[AuctionResponse.model_validate(a) for a in items], total=total)


@router.get(
    "/{auction_id}",
    response_model=AuctionDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="Get auction",
    description="Auction with its bids, highest first.",
    tags=["auctions"],
)
async def get_auction(
    auction_id: UUID,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    service = AuctionService(db)
    auction = await service.get_auction(auction_id)
    bids = await service.list_bids(auction_id)
    return AuctionDetailResponse(
        auction=AuctionResponse.model_validate(auction),
        bids=[BidResponse.model_validate(b) for b in bids],
    )


@router.patch(
    "/{auction_id}",
    response_model=AuctionResponse,
    status_code=status.HTTP_200_OK,
    summary="Update auction",
    description="Change name, description, reserve price or duration of your auction while it has no bids.",
    tags=["auctions"],
)
async def update_auction(
    auction_id: UUID,
    data: AuctionUpdate,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    auction = await AuctionService(db).update_auction(auction_id, current_customer.id, data)
    return AuctionResponse.model_validate(auction)


@router.delete(
    "/{auction_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete auction",
    description="Delete your auction while it has no bids.",
    tags=["auctions"],
)
async def delete_auction(
    auction_id: UUID,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    await AuctionService(db).delete_auction(auction_id, current_customer.id)
    return {"message": "Auction deleted successfully"}


@router.get(
    "/{auction_id}/bids",
    response_model=list[BidResponse],
    status_code=status.HTTP_200_OK,
    summary="Auction bids",
    tags=["auctions"],
)
async def list_bids(
    auction_id: UUID,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    bids = await AuctionService(db).list_bids(auction_id)
    return [BidResponse.model_validate(b) for b in bids]


@router.post(
    "/{auction_id}/bids",
    response_model=BidResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place bid",
    description="Bid on an active auction. The amount is reserved from your savings until the auction is settled.",
    tags=["auctions"],
)
async def place_bid(
    auction_id: UUID,
    data: BidCreate,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    bid = await AuctionService(db).place_bid(auction_id, current_customer.id, data.amount)
    return BidResponse.model_validate(bid)


@router.post(
    "/{auction_id}/close",
    response_model=SettlementResponse,
    status_code=status.HTTP_200_OK,
    summary="Close auction",
    description="End your auction now. The highest bid wins, other bidders are refunded.",
    tags=["auctions"],
)
async def close_auction(
    auction_id: UUID,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    auction, winner, refunded = await AuctionService(db).close_auction(auction_id, current_customer.id)
    return SettlementResponse(
        auction=AuctionResponse.model_validate(auction),
        winning_bid=BidResponse.model_validate(winner) if winner else None,
        refunded_bids=refunded,
    )


@router.post(
    "/{auction_id}/cancel",
    response_model=AuctionResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel auction",
    description="Cancel your auction. Only possible while it has no bids.",
    tags=["auctions"],
)
async def cancel_auction(
    auction_id: UUID,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    auction = await AuctionService(db).cancel_auction(auction_id, current_customer.id)
    return AuctionResponse.model_validate(auction)
