import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.savings.schemas import DirectDepositCreate, SavingCreate
from app.core.database import transaction
from app.core.exceptions import NotFoundError, StateConflictError
from app.core.ledger import post_entry
from app.models.customer import Customer
from app.models.enums import LedgerAccount, LedgerEntryType, SavingStatus
from app.models.saving import Saving


class SavingService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def _get_saving(self, saving_id: UUID) -> Saving:
        result = await self.db.execute(
            select(Saving)
            .where(Saving.id == saving_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        saving = result.scalars().first()
        if saving is None:
            raise NotFoundError("Saving record not found")
        return saving

    async def _credit(self, saving: Saving) -> None:
        await post_entry(
            self.db,
            saving.customer_id,
            LedgerAccount.savings,
            saving.amount,
            LedgerEntryType.deposit,
            description=saving.notes or "Savings deposit",
            reference_id=saving.id,
        )

    async def submit_saving(self, customer: Customer, data: SavingCreate) -> Saving:
        saving = Saving(
            customer_id=customer.id,
            amount=data.amount,
            notes=data.notes,
            status=SavingStatus.pending.value,
        )
        async with transaction(self.db):
            self.db.add(saving)
        await self.db.refresh(saving)
        self.logger.info("Saving %s of %.2f submitted by %s", saving.id, saving.amount, customer.id)
        return saving

    async def direct_deposit(self, data: DirectDepositCreate, admin_id: UUID) -> Saving:
        if await self.db.get(Customer, data.customer_id) is None:
            raise NotFoundError("Customer not found")
        saving = Saving(
            customer_id=data.customer_id,
            amount=data.amount,
            notes=data.notes,
            status=SavingStatus.verified.value,
            verified_at=datetime.utcnow(),
            verified_by=admin_id,
        )
        async with transaction(self.db):
            self.db.add(saving)
            await self.db.flush()
            await self._credit(saving)
        await self.db.refresh(saving)
        self.logger.info("Direct deposit %s of %.2f for %s by %s", saving.id, saving.amount, saving.customer_id, admin_id)
        return saving

    async def verify_saving(self, saving_id: UUID, admin_id: UUID, notes: Optional[str] = None) -> Saving:
        """Verify a pending deposit and credit the customer's savings balance."""
        saving = await self._get_saving(saving_id)
        if saving.status != SavingStatus.pending.value:
            raise StateConflictError(f"Saving is already {saving.status}")
        async with transaction(self.db):
            saving.status = SavingStatus.verified.value
            saving.verified_at = datetime.utcnow()
            saving.verified_by = admin_id
            if notes:
                saving.notes = notes
            self.db.add(saving)
            await self._credit(saving)
        self.logger.info("Saving %s verified by %s", saving.id, admin_id)
        return saving

    async def reject_saving(self, saving_id: UUID, admin_id: UUID, notes: Optional[str] = None) -> Saving:
        saving = await self._get_saving(saving_id)
        if saving.status != SavingStatus.pending.value:
            raise StateConflictError(f"Saving is already {saving.status}")
        async with transaction(self.db):
            saving.status = SavingStatus.rejected.value
            if notes:
                saving.notes = notes
            self.db.add(saving)
        self.logger.info("Saving %s rejected by %s", saving.id, admin_id)
        return saving

    async def list_savings(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
    ) -> Tuple[List[Saving], int]:
        filters = []
        if status:
            filters.append(Saving.status == status)
        if customer_id:
            filters.append(Saving.customer_id == customer_id)
        total = (await self.db.execute(select(func.count(Saving.id)).where(*filters))).scalar() or 0
        result = await self.db.execute(
            select(Saving).where(*filters).order_by(Saving.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total
