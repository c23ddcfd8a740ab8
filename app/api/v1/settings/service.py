import logging
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.settings.schemas import LoanSettingsUpdate, RateSettings
from app.core.config import settings
from app.core.database import transaction
from app.core.deps import get_db
from app.models.loan_settings import LoanSettings, LoanSettingsHistory

SETTINGS_KEY = "loan_settings"


class RateSettingsService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def get_settings_row(self) -> Optional[LoanSettings]:
        result = await self.db.execute(select(LoanSettings).where(LoanSettings.key == SETTINGS_KEY))
        return result.scalars().first()

    async def get_current_rates(self) -> RateSettings:
        """Saved rates, or the configured defaults when none have been saved yet."""
        row = await self.get_settings_row()
        if row is None:
            return RateSettings(
                interest_rate=settings.DEFAULT_INTEREST_RATE,
                processing_fee_rate=settings.DEFAULT_PROCESSING_FEE_RATE,
            )
        return RateSettings(interest_rate=row.interest_rate, processing_fee_rate=row.processing_fee_rate)

    async def update_rates(self, data: LoanSettingsUpdate, admin_id: UUID) -> LoanSettings:
        """Upsert the rate row and append a history entry with the previous and new values."""
        row = await self.get_settings_row()
        previous = await self.get_current_rates()
        async with transaction(self.db):
            if row is None:
                row = LoanSettings(
                    key=SETTINGS_KEY,
                    interest_rate=previous.interest_rate,
                    processing_fee_rate=previous.processing_fee_rate,
                )
                self.db.add(row)

            row.interest_rate = float(data.interest_rate)
            if data.processing_fee_rate is not None:
                row.processing_fee_rate = float(data.processing_fee_rate)
            row.updated_by = admin_id

            self.db.add(LoanSettingsHistory(
                previous_interest_rate=previous.interest_rate,
                previous_processing_fee_rate=previous.processing_fee_rate,
                interest_rate=row.interest_rate,
                processing_fee_rate=row.processing_fee_rate,
                updated_by=admin_id,
            ))
        await self.db.refresh(row)
        self.logger.info(
            "Loan settings updated by %s: interest %.2f%% -> %.2f%%, fee %.2f%% -> %.2f%%",
            admin_id,
            previous.interest_rate, row.interest_rate,
            previous.processing_fee_rate, row.processing_fee_rate,
        )
        return row

    async def get_history(self, skip: int = 0, limit: int = 50) -> Tuple[List[LoanSettingsHistory], int]:
        total = (await self.db.execute(select(func.count(LoanSettingsHistory.id)))).scalar() or 0
        result = await self.db.execute(
            select(LoanSettingsHistory)
            .order_by(LoanSettingsHistory.updated_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total


async def get_rate_settings_reader(db: AsyncSession = Depends(get_db)) -> RateSettingsService:
    """Dependency handing the loan service its rate source; tests override it to pin rates."""
    return RateSettingsService(db)
