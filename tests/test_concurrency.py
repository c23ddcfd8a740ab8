"""
Two requests racing on the same row. Each side runs in its own session against a file-backed
database, both read before either writes, and the versioned row lets exactly one of them commit.
"""
import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.api.v1.auctions.schemas import AuctionCreate
from app.api.v1.auctions.service import AuctionService
from app.api.v1.loans.schemas import LoanApplyRequest
from app.api.v1.loans.service import LoanService
from app.api.v1.repayments.schemas import RepaymentCreate
from app.api.v1.repayments.service import RepaymentService
from app.core.database import Base
from app.core.exceptions import ConcurrencyConflictError
from app.models.auction import Auction
from app.models.bid import Bid
from app.models.customer import Customer
from app.models.enums import RepaymentStatus
from app.models.loan import Loan
from app.models.loan_payment import LoanPayment
from app.models.repayment import Repayment
from factories import FixedRates, make_admin, make_customer, make_investment


class _Rendezvous:
    """Holds each caller until every party has arrived."""

    def __init__(self, parties: int = 2):
        self.parties = parties
        self.arrived = 0
        self.ready = asyncio.Event()

    async def wait(self):
        self.arrived += 1
        if self.arrived >= self.parties:
            self.ready.set()
        await asyncio.wait_for(self.ready.wait(), timeout=5)


@pytest.fixture
async def file_sessions(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


async def _outcome(call):
    try:
        return await call
    except ConcurrencyConflictError as e:
        return e


async def test_simultaneous_bids_let_one_through(file_sessions, monkeypatch):
    async with file_sessions() as db:
        owner = await make_customer(db, first_name="Owner")
        alice = await make_customer(db, first_name="Alice", savings=10000)
        bob = await make_customer(db, first_name="Bob", savings=10000)
        investment = await make_investment(db, owner)
        auction = await AuctionService(db).create_auction(
            owner,
            AuctionCreate(investment_id=investment.id, auction_name="Unit Trust lot", reserve_price=5000, duration_days=7),
        )

    rendezvous = _Rendezvous()
    load_auction = AuctionService.get_auction

    async def load_then_wait(self, auction_id, for_update=False):
        loaded = await load_auction(self, auction_id, for_update)
        if for_update:
            await rendezvous.wait()
        return loaded

    monkeypatch.setattr(AuctionService, "get_auction", load_then_wait)

    async def bid(customer, amount):
        async with file_sessions() as session:
            return await _outcome(AuctionService(session).place_bid(auction.id, customer.id, amount))

    results = await asyncio.gather(bid(alice, 6000), bid(bob, 7000))

    conflicts = [r for r in results if isinstance(r, ConcurrencyConflictError)]
    placed = [r for r in results if isinstance(r, Bid)]
    assert len(conflicts) == 1
    assert len(placed) == 1
    winner_id = placed[0].customer_id
    loser_id = bob.id if winner_id == alice.id else alice.id

    async with file_sessions() as db:
        bids = (await db.execute(select(Bid).where(Bid.auction_id == auction.id))).scalars().all()
        assert [b.id for b in bids] == [placed[0].id]
        assert (await db.get(Auction, auction.id)).current_bid == placed[0].amount
        assert (await db.get(Customer, loser_id)).savings_balance == 10000.0
        assert (await db.get(Customer, winner_id)).savings_balance == 10000.0 - placed[0].amount


async def test_simultaneous_repayment_approvals_apply_one(file_sessions, monkeypatch):
    async with file_sessions() as db:
        customer = await make_customer(db)
        admin = await make_admin(db)
        loans = LoanService(db, rate_reader=FixedRates())
        loan = await loans.apply_for_loan(customer, LoanApplyRequest(
            principal_amount=100000,
            duration_months=12,
            purpose="Dairy equipment",
            borrower_full_name="Ada Member",
            borrower_phone="+254700000001",
            borrower_email="ada@example.com",
        ))
        loan = await loans.approve_loan(loan.id, admin.id)
        repayments = RepaymentService(db)
        first = await repayments.submit_repayment(customer, RepaymentCreate(loan_id=loan.id, amount=1000))
        second = await repayments.submit_repayment(customer, RepaymentCreate(loan_id=loan.id, amount=2500))

    rendezvous = _Rendezvous()
    load_loan = RepaymentService._get_loan

    async def load_then_wait(self, loan_id):
        loaded = await load_loan(self, loan_id)
        await rendezvous.wait()
        return loaded

    monkeypatch.setattr(RepaymentService, "_get_loan", load_then_wait)

    async def approve(repayment):
        async with file_sessions() as session:
            return await _outcome(RepaymentService(session).approve_repayment(repayment.id, admin.id))

    results = await asyncio.gather(approve(first), approve(second))

    conflicts = [r for r in results if isinstance(r, ConcurrencyConflictError)]
    applied = [r for r in results if isinstance(r, tuple)]
    assert len(conflicts) == 1
    assert len(applied) == 1
    approved, _ = applied[0]
    pending_id = second.id if approved.id == first.id else first.id

    async with file_sessions() as db:
        stored = await db.get(Loan, loan.id)
        assert stored.paid_amount == approved.amount
        assert stored.remaining_balance == 110000.0 - approved.amount
        assert (await db.get(Repayment, pending_id)).status == RepaymentStatus.pending_review.value
        payments = (
            await db.execute(select(func.count(LoanPayment.id)).where(LoanPayment.loan_id == loan.id))
        ).scalar()
        assert payments == 1
