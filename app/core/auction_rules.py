"""
Bid validation and winner selection.

These are pure: services load the auction, the bidder's balance and the bids,
call these, and only then write anything.
"""
from datetime import datetime
from typing import Iterable, Optional, Protocol, TypeVar
from uuid import UUID

from app.core.exceptions import (
    AuthorizationError,
    InsufficientFundsError,
    StateConflictError,
    ValidationError,
)
from app.models.enums import AuctionStatus


class _AuctionLike(Protocol):
    customer_id: UUID
    status: str
    end_date: datetime
    reserve_price: float
    current_bid: float


class _BidLike(Protocol):
    amount: float
    created_at: datetime


BidT = TypeVar("BidT", bound=_BidLike)


def validate_bid(
    auction: _AuctionLike,
    bidder_id: UUID,
    amount: float,
    available_balance: float,
    now: datetime,
) -> None:
    """
    Check a bid against the auction, in order; the first failing rule raises.

    1. bidder is not the owner
    2. auction is active
    3. auction has not ended
    4. amount meets the reserve price, which is always positive
    5. amount beats the current bid
    6. bidder can cover the amount
    """
    if auction.customer_id == bidder_id:
        raise AuthorizationError("Cannot bid on your own auction")
    if auction.status != AuctionStatus.active.value:
        raise StateConflictError("Auction is not active")
    if now > auction.end_date:
        raise StateConflictError("Auction has ended")
    if amount < auction.reserve_price:
        raise ValidationError(f"Bid must meet or exceed reserve price of {auction.reserve_price:,.2f}")
    if amount <= (auction.current_bid or 0):
        raise ValidationError(f"Bid must be higher than current bid of {auction.current_bid:,.2f}")
    if (available_balance or 0) < amount:
        raise InsufficientFundsError("Insufficient funds to place bid")


def pick_winning_bid(bids: Iterable[BidT]) -> Optional[BidT]:
    """Highest amount wins; on equal amounts the earliest bid wins."""
    ordered = sorted(bids, key=lambda b: (-b.amount, b.created_at))
    return ordered[0] if ordered else None


def ensure_can_close(auction: _AuctionLike) -> None:
    if auction.status != AuctionStatus.active.value:
        raise StateConflictError("Only active auctions can be closed")


def ensure_can_cancel(auction: _AuctionLike) -> None:
    if auction.status != AuctionStatus.active.value:
        raise StateConflictError("Only active auctions can be cancelled")
    if (auction.current_bid or 0) > 0:
        raise StateConflictError("Cannot cancel auction with active bids")


def ensure_no_bids(auction: _AuctionLike, action: str) -> None:
    """Auctions that already hold bids cannot be modified or deleted."""
    if (auction.current_bid or 0) > 0:
        raise StateConflictError(f"Cannot {action} auction with active bids")
