import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.auctions.schemas import AuctionCreate, AuctionUpdate
from app.core import email as email_module
from app.core.auction_rules import (
    ensure_can_cancel,
    ensure_can_close,
    ensure_no_bids,
    pick_winning_bid,
    validate_bid,
)
from app.core.database import transaction
from app.core.exceptions import (
    AuthorizationError,
    ConcurrencyConflictError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from app.core.ledger import post_entry
from app.core.notification_service import notify, scope_key_for_auction, was_notification_sent
from app.models.auction import Auction
from app.models.bid import Bid
from app.models.customer import Customer
from app.models.enums import AuctionStatus, BidStatus, LedgerAccount, LedgerEntryType
from app.models.investment import Investment


class AuctionService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def get_auction(self, auction_id: UUID, for_update: bool = False) -> Auction:
        stmt = select(Auction).where(Auction.id == auction_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        auction = result.scalars().first()
        if auction is None:
            raise NotFoundError("Auction not found")
        return auction

    async def _get_owned_auction(self, auction_id: UUID, customer_id: UUID, action: str) -> Auction:
        auction = await self.get_auction(auction_id, for_update=True)
        if auction.customer_id != customer_id:
            raise AuthorizationError(f"Only the auction owner can {action} this auction")
        return auction

    async def list_auctions(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
    ) -> Tuple[List[Auction], int]:
        filters = []
        if status:
            filters.append(Auction.status == status)
        if customer_id:
            filters.append(Auction.customer_id == customer_id)
        total = (await self.db.execute(select(func.count(Auction.id)).where(*filters))).scalar() or 0
        result = await self.db.execute(
            select(Auction).where(*filters).order_by(Auction.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_bids(self, auction_id: UUID) -> List[Bid]:
        await self.get_auction(auction_id)
        result = await self.db.execute(
            select(Bid).where(Bid.auction_id == auction_id).order_by(Bid.amount.desc(), Bid.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_auction(self, customer: Customer, data: AuctionCreate) -> Auction:
        """Put one of the customer's investments up for auction."""
        investment = await self.db.get(Investment, data.investment_id)
        if investment is None or investment.customer_id != customer.id:
            raise NotFoundError("Investment not found")
        existing = await self.db.execute(
            select(Auction.id).where(
                Auction.investment_id == investment.id,
                Auction.status == AuctionStatus.active.value,
            ).limit(1)
        )
        if existing.scalar_one_or_none() is not None:
            raise ValidationError("This investment is already in an active auction")

        start = datetime.utcnow()
        auction = Auction(
            customer_id=customer.id,
            investment_id=investment.id,
            investment_name=investment.investment_name,
            auction_name=data.auction_name,
            description=data.description,
            reserve_price=data.reserve_price,
            current_bid=0.0,
            duration_days=data.duration_days,
            status=AuctionStatus.active.value,
            start_date=start,
            end_date=start + timedelta(days=data.duration_days),
        )
        async with transaction(self.db):
            self.db.add(auction)
            await self.db.execute(
                update(Customer)
                .where(Customer.id == customer.id)
                .values(total_auctions=Customer.total_auctions + 1)
                .execution_options(synchronize_session="evaluate")
            )
        await self.db.refresh(auction)
        self.logger.info("Auction %s created by %s for investment %s", auction.id, customer.id, investment.id)
        return auction

    async def update_auction(self, auction_id: UUID, customer_id: UUID, data: AuctionUpdate) -> Auction:
        auction = await self._get_owned_auction(auction_id, customer_id, "modify")
        if auction.status != AuctionStatus.active.value:
            raise StateConflictError("Only active auctions can be modified")
        ensure_no_bids(auction, "modify")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        async with transaction(self.db):
            for field in ("auction_name", "description", "reserve_price"):
                if field in changes:
                    setattr(auction, field, changes[field])
            if "duration_days" in changes:
                auction.duration_days = changes["duration_days"]
                auction.end_date = auction.start_date + timedelta(days=auction.duration_days)
            self.db.add(auction)
        return auction

    async def delete_auction(self, auction_id: UUID, customer_id: UUID) -> None:
        auction = await self._get_owned_auction(auction_id, customer_id, "delete")
        ensure_no_bids(auction, "delete")
        async with transaction(self.db):
            await self.db.delete(auction)
            await self.db.execute(
                update(Customer)
                .where(Customer.id == customer_id, Customer.total_auctions > 0)
                .values(total_auctions=Customer.total_auctions - 1)
                .execution_options(synchronize_session="evaluate")
            )
        self.logger.info("Auction %s deleted by %s", auction_id, customer_id)

    async def place_bid(self, auction_id: UUID, bidder_id: UUID, amount: float) -> Bid:
        """
        Reserve the bid amount from the bidder's savings and record the bid as the new current bid.
        Earlier bids keep their reservation until the auction is settled.
        """
        auction = await self.get_auction(auction_id, for_update=True)
        balance = (
            await self.db.execute(select(Customer.savings_balance).where(Customer.id == bidder_id))
        ).scalar_one_or_none()
        if balance is None:
            raise NotFoundError("Customer not found")
        validate_bid(auction, bidder_id, amount, balance, datetime.utcnow())
        first_bid = (auction.current_bid or 0) == 0

        bid = Bid(auction_id=auction.id, customer_id=bidder_id, amount=amount, status=BidStatus.active.value)
        async with transaction(self.db):
            self.db.add(bid)
            await self.db.flush()
            await post_entry(
                self.db,
                bidder_id,
                LedgerAccount.savings,
                -amount,
                LedgerEntryType.bid_reserve,
                description=f"Bid on auction {auction.auction_name}",
                reference_id=bid.id,
                require_funds=True,
            )
            auction.current_bid = amount
            self.db.add(auction)
        self.logger.info("Bid %s of %.2f placed on auction %s by %s", bid.id, amount, auction.id, bidder_id)

        if first_bid:
            await self._notify_first_bid(auction, amount)
        return bid

    async def close_auction(self, auction_id: UUID, customer_id: UUID) -> Tuple[Auction, Optional[Bid], int]:
        """Owner ends the auction now; bids, if any, are settled."""
        auction = await self._get_owned_auction(auction_id, customer_id, "close")
        ensure_can_close(auction)
        async with transaction(self.db):
            auction.end_date = datetime.utcnow()
            winner, refunded = await self._settle(auction, AuctionStatus.closed)
        return auction, winner, refunded

    async def cancel_auction(self, auction_id: UUID, customer_id: UUID) -> Auction:
        auction = await self._get_owned_auction(auction_id, customer_id, "cancel")
        ensure_can_cancel(auction)
        async with transaction(self.db):
            auction.status = AuctionStatus.cancelled.value
            self.db.add(auction)
        self.logger.info("Auction %s cancelled by %s", auction.id, customer_id)
        return auction

    async def settle_expired(self, now: Optional[datetime] = None) -> dict:
        """
        Settle every active auction whose end date has passed: completed when it has bids,
        cancelled otherwise. Each auction commits on its own.
        """
        now = now or datetime.utcnow()
        result = await self.db.execute(
            select(Auction.id).where(
                Auction.status == AuctionStatus.active.value,
                Auction.end_date < now,
            )
        )
        summary = {"completed": 0, "cancelled": 0, "conflicts": 0}
        for auction_id in result.scalars().all():
            try:
                auction = await self.get_auction(auction_id, for_update=True)
                if auction.status != AuctionStatus.active.value:
                    continue
                final = AuctionStatus.completed if (auction.current_bid or 0) > 0 else AuctionStatus.cancelled
                async with transaction(self.db):
                    await self._settle(auction, final)
                summary[final.value] += 1
            except (ConcurrencyConflictError, StateConflictError) as e:
                summary["conflicts"] += 1
                self.logger.warning("Auction %s not settled: %s", auction_id, e)
        if any(summary.values()):
            self.logger.info("Expired auction settlement: %s", summary)
        return summary

    async def _settle(self, auction: Auction, final_status: AuctionStatus) -> Tuple[Optional[Bid], int]:
        """
        Highest bid wins (earliest on ties). The owner receives the winning amount, the investment
        moves to the winner and every other bid is refunded its own amount. Runs inside the caller's transaction.
        """
        result = await self.db.execute(
            select(Bid).where(Bid.auction_id == auction.id, Bid.status == BidStatus.active.value)
        )
        bids = list(result.scalars().all())
        winner = pick_winning_bid(bids)
        auction.status = final_status.value
        self.db.add(auction)
        if winner is None:
            self.logger.info("Auction %s settled as %s without bids", auction.id, final_status.value)
            return None, 0

        winner.status = BidStatus.won.value
        auction.winning_bid_id = winner.id
        await post_entry(
            self.db,
            auction.customer_id,
            LedgerAccount.savings,
            winner.amount,
            LedgerEntryType.auction_proceeds,
            description=f"Proceeds of auction {auction.auction_name}",
            reference_id=auction.id,
        )
        investment = await self.db.get(Investment, auction.investment_id)
        if investment is not None:
            investment.customer_id = winner.customer_id
            self.db.add(investment)

        refunded = 0
        for bid in bids:
            if bid.id == winner.id:
                continue
            bid.status = BidStatus.refunded.value
            await post_entry(
                self.db,
                bid.customer_id,
                LedgerAccount.savings,
                bid.amount,
                LedgerEntryType.bid_refund,
                description=f"Refund for auction {auction.auction_name}",
                reference_id=bid.id,
            )
            refunded += 1
        self.logger.info(
            "Auction %s settled as %s: bid %s won at %.2f, %d refunded",
            auction.id, final_status.value, winner.id, winner.amount, refunded,
        )
        return winner, refunded

    async def _notify_first_bid(self, auction: Auction, amount: float) -> None:
        scope_key = scope_key_for_auction(auction.id)
        if await was_notification_sent(self.db, "first_bid", scope_key):
            return
        owner = await self.db.get(Customer, auction.customer_id)
        if owner is None:
            return
        await notify(
            self.db,
            "first_bid",
            scope_key,
            owner.email,
            email_module.send_first_bid_email(
                owner_email=owner.email,
                owner_name=owner.full_name,
                auction_name=auction.auction_name,
                amount=amount,
            ),
        )
