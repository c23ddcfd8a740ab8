import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.withdrawals.schemas import WithdrawalCreate, WithdrawalStatusUpdate
from app.core.database import transaction
from app.core.exceptions import NotFoundError, StateConflictError, ValidationError
from app.core.ledger import post_entry
from app.models.customer import Customer
from app.models.enums import LedgerAccount, LedgerEntryType, WithdrawalStatus
from app.models.withdrawal import Withdrawal

# target status -> statuses a withdrawal may move from
_ALLOWED_FROM = {
    WithdrawalStatus.approved.value: (WithdrawalStatus.pending.value,),
    WithdrawalStatus.processing.value: (WithdrawalStatus.pending.value, WithdrawalStatus.approved.value),
    WithdrawalStatus.completed.value: (WithdrawalStatus.approved.value, WithdrawalStatus.processing.value),
    WithdrawalStatus.rejected.value: (
        WithdrawalStatus.pending.value,
        WithdrawalStatus.approved.value,
        WithdrawalStatus.processing.value,
    ),
}


class WithdrawalService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def get_withdrawal(self, withdrawal_id: UUID, for_update: bool = False) -> Withdrawal:
        stmt = select(Withdrawal).where(Withdrawal.id == withdrawal_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        withdrawal = (await self.db.execute(stmt)).scalars().first()
        if withdrawal is None:
            raise NotFoundError("Withdrawal not found")
        return withdrawal

    async def request_withdrawal(self, customer: Customer, data: WithdrawalCreate) -> Withdrawal:
        """
        Record a withdrawal request and reserve its amount from savings in the same transaction.
        The balance already excludes earlier pending requests, so it alone has to cover the amount.
        """
        withdrawal = Withdrawal(
            customer_id=customer.id,
            amount=data.amount,
            account_name=data.account_name,
            bank_name=data.bank_name,
            account_number=data.account_number,
            routing_number=data.routing_number,
            notes=data.notes,
            status=WithdrawalStatus.pending.value,
        )
        async with transaction(self.db):
            self.db.add(withdrawal)
            await self.db.flush()
            await post_entry(
                self.db,
                customer.id,
                LedgerAccount.savings,
                -data.amount,
                LedgerEntryType.withdrawal,
                description=f"Withdrawal to {data.bank_name} account",
                reference_id=withdrawal.id,
                require_funds=True,
            )
        await self.db.refresh(withdrawal)
        self.logger.info("Withdrawal %s of %.2f requested by %s", withdrawal.id, withdrawal.amount, customer.id)
        return withdrawal

    async def update_status(self, withdrawal_id: UUID, data: WithdrawalStatusUpdate, admin_id: UUID) -> Withdrawal:
        """Move a withdrawal along its workflow. Rejecting returns the reserved amount to savings."""
        target = data.status.value
        if target not in _ALLOWED_FROM:
            raise ValidationError("Valid status is required")
        withdrawal = await self.get_withdrawal(withdrawal_id, for_update=True)
        if withdrawal.status not in _ALLOWED_FROM[target]:
            raise StateConflictError(f"Cannot mark a {withdrawal.status} withdrawal as {target}")

        async with transaction(self.db):
            withdrawal.status = target
            withdrawal.processed_at = datetime.utcnow()
            withdrawal.processed_by = admin_id
            if data.admin_notes:
                withdrawal.admin_notes = data.admin_notes
            self.db.add(withdrawal)
            if target == WithdrawalStatus.rejected.value:
                await post_entry(
                    self.db,
                    withdrawal.customer_id,
                    LedgerAccount.savings,
                    withdrawal.amount,
                    LedgerEntryType.withdrawal_refund,
                    description="Withdrawal rejected",
                    reference_id=withdrawal.id,
                )
        self.logger.info("Withdrawal %s marked %s by %s", withdrawal.id, target, admin_id)
        return withdrawal

    async def list_withdrawals(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
    ) -> Tuple[List[Withdrawal], int]:
        filters = []
        if status:
            filters.append(Withdrawal.status == status)
        if customer_id:
            filters.append(Withdrawal.customer_id == customer_id)
        total = (await self.db.execute(select(func.count(Withdrawal.id)).where(*filters))).scalar() or 0
        result = await self.db.execute(
            select(Withdrawal).where(*filters).order_by(Withdrawal.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total
