import uuid
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from app.core.auction_rules import ensure_can_cancel, ensure_can_close, ensure_no_bids, pick_winning_bid, validate_bid
from app.core.exceptions import AuthorizationError, InsufficientFundsError, StateConflictError, ValidationError

NOW = datetime(2026, 10, 19, 12, 0)
OWNER = uuid.uuid4()
BIDDER = uuid.uuid4()


def _auction(**overrides):
    fields = dict(
        customer_id=OWNER,
        status="active",
        end_date=NOW + timedelta(days=3),
        reserve_price=5000.0,
        current_bid=0.0,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_bid_at_reserve_is_accepted():
    validate_bid(_auction(), BIDDER, 5000, 10000, NOW)


def test_bid_below_reserve_is_rejected():
    with pytest.raises(ValidationError):
        validate_bid(_auction(), BIDDER, 4999, 10000, NOW)


def test_bid_must_beat_current_bid():
    auction = _auction(current_bid=5000.0)

    with pytest.raises(ValidationError):
        validate_bid(auction, BIDDER, 5000, 10000, NOW)
    validate_bid(auction, BIDDER, 6000, 10000, NOW)


def test_owner_cannot_bid():
    with pytest.raises(AuthorizationError):
        validate_bid(_auction(), OWNER, 6000, 10000, NOW)


@pytest.mark.parametrize("status", ["closed", "completed", "cancelled"])
def test_inactive_auction_rejects_bids(status):
    with pytest.raises(StateConflictError):
        validate_bid(_auction(status=status), BIDDER, 6000, 10000, NOW)


def test_ended_auction_rejects_bids():
    with pytest.raises(StateConflictError):
        validate_bid(_auction(end_date=NOW - timedelta(seconds=1)), BIDDER, 6000, 10000, NOW)


def test_bidder_must_cover_amount():
    with pytest.raises(InsufficientFundsError):
        validate_bid(_auction(), BIDDER, 6000, 5999.99, NOW)


@pytest.mark.parametrize("amount", [0, -10])
def test_non_positive_amount_fails_reserve(amount):
    with pytest.raises(ValidationError):
        validate_bid(_auction(), BIDDER, amount, 10000, NOW)


def test_owner_bidding_zero_is_refused_as_owner():
    with pytest.raises(AuthorizationError):
        validate_bid(_auction(), OWNER, 0, 10000, NOW)


def test_rules_apply_in_order():
    # owner bidding below reserve on a closed auction: the ownership rule fires first
    auction = _auction(status="closed")
    with pytest.raises(AuthorizationError):
        validate_bid(auction, OWNER, 1, 0, NOW)
    # closed auction and short balance: state before funds
    with pytest.raises(StateConflictError):
        validate_bid(auction, BIDDER, 6000, 0, NOW)


def test_highest_bid_wins():
    bids = [
        SimpleNamespace(amount=6000, created_at=NOW),
        SimpleNamespace(amount=7000, created_at=NOW + timedelta(minutes=1)),
    ]

    assert pick_winning_bid(bids).amount == 7000


def test_earliest_bid_wins_a_tie():
    first = SimpleNamespace(amount=7000, created_at=NOW)
    second = SimpleNamespace(amount=7000, created_at=NOW + timedelta(minutes=5))

    assert pick_winning_bid([second, first]) is first


def test_no_bids_no_winner():
    assert pick_winning_bid([]) is None


def test_cancel_requires_no_bids():
    ensure_can_cancel(_auction())
    with pytest.raises(StateConflictError):
        ensure_can_cancel(_auction(current_bid=6000.0))
    with pytest.raises(StateConflictError):
        ensure_can_cancel(_auction(status="closed"))


def test_close_requires_active():
    ensure_can_close(_auction(current_bid=6000.0))
    with pytest.raises(StateConflictError):
        ensure_can_close(_auction(status="closed"))


def test_modify_requires_no_bids():
    ensure_no_bids(_auction(), "modify")
    with pytest.raises(StateConflictError):
        ensure_no_bids(_auction(current_bid=1.0), "modify")
