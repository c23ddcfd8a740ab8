from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from app.api.v1.auctions.schemas import AuctionCreate, AuctionUpdate
from app.api.v1.auctions.service import AuctionService
from app.core.exceptions import (
    AuthorizationError,
    InsufficientFundsError,
    StateConflictError,
    ValidationError,
)
from app.core.ledger import reconcile_customer
from app.models.bid import Bid
from app.models.enums import AuctionStatus, BidStatus
from app.models.notification_log import NotificationLog
from factories import make_customer, make_investment


async def _setup(db, reserve_price: float = 5000, savings: float = 10000):
    owner = await make_customer(db, first_name="Owner")
    alice = await make_customer(db, first_name="Alice", savings=savings)
    bob = await make_customer(db, first_name="Bob", savings=savings)
    investment = await make_investment(db, owner)
    auction = await AuctionService(db).create_auction(
        owner,
        AuctionCreate(
            investment_id=investment.id,
            auction_name="Unit Trust lot",
            reserve_price=reserve_price,
            duration_days=7,
        ),
    )
    return owner, alice, bob, investment, auction


async def test_create_auction_counts_toward_owner(db):
    owner, _, _, investment, auction = await _setup(db)

    assert auction.status == AuctionStatus.active.value
    assert auction.current_bid == 0.0
    assert auction.end_date - auction.start_date == timedelta(days=7)
    assert auction.investment_name == investment.investment_name
    await db.refresh(owner)
    assert owner.total_auctions == 1


async def test_investment_cannot_be_auctioned_twice(db):
    owner, _, _, investment, _ = await _setup(db)

    with pytest.raises(ValidationError):
        await AuctionService(db).create_auction(
            owner,
            AuctionCreate(investment_id=investment.id, auction_name="Again", reserve_price=1, duration_days=1),
        )


async def test_bids_must_meet_reserve_and_beat_current(db):
    _, alice, bob, _, auction = await _setup(db)
    service = AuctionService(db)

    await service.place_bid(auction.id, alice.id, 5000)
    await db.refresh(auction)
    assert auction.current_bid == 5000.0

    with pytest.raises(ValidationError):
        await service.place_bid(auction.id, bob.id, 4999)
    await db.refresh(bob)
    assert bob.savings_balance == 10000.0

    await service.place_bid(auction.id, bob.id, 6000)
    await db.refresh(auction)
    assert auction.current_bid == 6000.0


async def test_bid_reserves_savings(db):
    _, alice, _, _, auction = await _setup(db)

    bid = await AuctionService(db).place_bid(auction.id, alice.id, 5500)

    assert bid.status == BidStatus.active.value
    await db.refresh(alice)
    assert alice.savings_balance == 4500.0


async def test_owner_cannot_bid(db):
    owner, _, _, _, auction = await _setup(db)

    with pytest.raises(AuthorizationError):
        await AuctionService(db).place_bid(auction.id, owner.id, 6000)


async def test_short_balance_leaves_no_trace(db):
    _, alice, _, _, auction = await _setup(db, savings=4000)

    with pytest.raises(InsufficientFundsError):
        await AuctionService(db).place_bid(auction.id, alice.id, 5000)

    await db.refresh(auction)
    await db.refresh(alice)
    assert auction.current_bid == 0.0
    assert alice.savings_balance == 4000.0
    assert (await db.execute(select(func.count(Bid.id)))).scalar() == 0


async def test_close_settles_highest_bid(db):
    owner, alice, bob, investment, auction = await _setup(db)
    service = AuctionService(db)
    await service.place_bid(auction.id, alice.id, 6000)
    await service.place_bid(auction.id, bob.id, 7000)

    auction, winner, refunded = await service.close_auction(auction.id, owner.id)

    assert auction.status == AuctionStatus.closed.value
    assert winner.customer_id == bob.id
    assert winner.status == BidStatus.won.value
    assert auction.winning_bid_id == winner.id
    assert refunded == 1
    for customer in (owner, alice, bob):
        await db.refresh(customer)
    await db.refresh(investment)
    assert owner.savings_balance == 7000.0
    assert alice.savings_balance == 10000.0
    assert bob.savings_balance == 3000.0
    assert investment.customer_id == bob.id


async def test_closing_twice_changes_nothing(db):
    owner, alice, _, _, auction = await _setup(db)
    service = AuctionService(db)
    await service.place_bid(auction.id, alice.id, 6000)
    await service.close_auction(auction.id, owner.id)

    with pytest.raises(StateConflictError):
        await service.close_auction(auction.id, owner.id)

    await db.refresh(owner)
    assert owner.savings_balance == 6000.0
    report = await reconcile_customer(db, owner.id)
    assert report["drift_detected"] is False


async def test_only_owner_can_close(db):
    _, alice, _, _, auction = await _setup(db)

    with pytest.raises(AuthorizationError):
        await AuctionService(db).close_auction(auction.id, alice.id)


async def test_close_without_bids(db):
    owner, _, _, investment, auction = await _setup(db)

    auction, winner, refunded = await AuctionService(db).close_auction(auction.id, owner.id)

    assert auction.status == AuctionStatus.closed.value
    assert winner is None
    assert refunded == 0
    await db.refresh(investment)
    assert investment.customer_id == owner.id


async def test_outbid_funds_stay_reserved_until_settlement(db):
    owner, alice, _, _, auction = await _setup(db, savings=20000)
    service = AuctionService(db)
    await service.place_bid(auction.id, alice.id, 5000)
    await service.place_bid(auction.id, alice.id, 6000)

    await db.refresh(alice)
    assert alice.savings_balance == 9000.0

    await service.close_auction(auction.id, owner.id)
    await db.refresh(alice)
    assert alice.savings_balance == 14000.0


async def test_cancel_with_bids_is_refused(db):
    owner, alice, _, _, auction = await _setup(db)
    service = AuctionService(db)
    await service.place_bid(auction.id, alice.id, 6000)

    with pytest.raises(StateConflictError):
        await service.cancel_auction(auction.id, owner.id)

    await db.refresh(auction)
    assert auction.status == AuctionStatus.active.value


async def test_cancel_without_bids(db):
    owner, _, _, _, auction = await _setup(db)

    auction = await AuctionService(db).cancel_auction(auction.id, owner.id)

    assert auction.status == AuctionStatus.cancelled.value


async def test_update_recomputes_end_date(db):
    owner, alice, _, _, auction = await _setup(db)
    service = AuctionService(db)

    auction = await service.update_auction(auction.id, owner.id, AuctionUpdate(reserve_price=8000, duration_days=3))

    assert auction.reserve_price == 8000.0
    assert auction.end_date == auction.start_date + timedelta(days=3)
    with pytest.raises(AuthorizationError):
        await service.update_auction(auction.id, alice.id, AuctionUpdate(auction_name="Mine now"))


async def test_delete_without_bids(db):
    owner, _, _, _, auction = await _setup(db)

    await AuctionService(db).delete_auction(auction.id, owner.id)

    await db.refresh(owner)
    assert owner.total_auctions == 0


async def test_first_bid_notifies_owner_once(db):
    _, alice, bob, _, auction = await _setup(db)
    service = AuctionService(db)
    await service.place_bid(auction.id, alice.id, 5000)
    await service.place_bid(auction.id, bob.id, 6000)

    logs = (await db.execute(select(NotificationLog).where(NotificationLog.notification_type == "first_bid"))).scalars().all()
    assert len(logs) == 1


async def test_settle_expired(db):
    owner, alice, bob, _, with_bids = await _setup(db)
    second = await make_investment(db, owner)
    service = AuctionService(db)
    without_bids = await service.create_auction(
        owner,
        AuctionCreate(investment_id=second.id, auction_name="Quiet lot", reserve_price=100, duration_days=1),
    )
    await service.place_bid(with_bids.id, alice.id, 6000)
    await service.place_bid(with_bids.id, bob.id, 7000)

    summary = await service.settle_expired(now=datetime.utcnow() + timedelta(days=30))

    assert summary == {"completed": 1, "cancelled": 1, "conflicts": 0}
    await db.refresh(with_bids)
    await db.refresh(without_bids)
    assert with_bids.status == AuctionStatus.completed.value
    assert without_bids.status == AuctionStatus.cancelled.value
    await db.refresh(owner)
    assert owner.savings_balance == 7000.0

    assert await service.settle_expired(now=datetime.utcnow() + timedelta(days=30)) == {
        "completed": 0,
        "cancelled": 0,
        "conflicts": 0,
    }


async def test_nothing_settles_before_end_date(db):
    _, alice, _, _, auction = await _setup(db)
    service = AuctionService(db)
    await service.place_bid(auction.id, alice.id, 6000)

    assert await service.settle_expired() == {"completed": 0, "cancelled": 0, "conflicts": 0}
    await db.refresh(auction)
    assert auction.status == AuctionStatus.active.value
