import logging
from typing import List, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.investments.schemas import InvestmentCreate
from app.core.database import transaction
from app.core.ledger import post_entry
from app.models.customer import Customer
from app.models.enums import LedgerAccount, LedgerEntryType
from app.models.investment import Investment


class InvestmentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def create_investment(self, customer: Customer, data: InvestmentCreate) -> Investment:
        """Buy an investment with savings. Fails with InsufficientFundsError when the balance is short."""
        investment = Investment(
            customer_id=customer.id,
            investment_name=data.investment_name,
            investment_type=data.investment_type,
            amount=data.amount,
        )
        async with transaction(self.db):
            self.db.add(investment)
            await self.db.flush()
            await post_entry(
                self.db,
                customer.id,
                LedgerAccount.savings,
                -data.amount,
                LedgerEntryType.investment_purchase,
                description=f"Investment {data.investment_name}",
                reference_id=investment.id,
                require_funds=True,
            )
        await self.db.refresh(investment)
        self.logger.info("Investment %s of %.2f created for customer %s", investment.id, investment.amount, customer.id)
        return investment

    async def list_investments(self, customer_id: UUID, skip: int = 0, limit: int = 100) -> Tuple[List[Investment], int]:
        total = (
            await self.db.execute(select(func.count(Investment.id)).where(Investment.customer_id == customer_id))
        ).scalar() or 0
        result = await self.db.execute(
            select(Investment)
            .where(Investment.customer_id == customer_id)
            .order_by(Investment.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total
