import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.repayments.schemas import RepaymentCreate
from app.core.database import transaction
from app.core.exceptions import NotFoundError, StateConflictError
from app.core.loan_calculator import apply_repayment
from app.core.loan_lifecycle import ensure_can, status_after_repayment
from app.models.customer import Customer
from app.models.enums import LoanPaymentType, RepaymentStatus
from app.models.loan import Loan
from app.models.loan_payment import LoanPayment
from app.models.repayment import Repayment


class RepaymentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def _get_repayment(self, repayment_id: UUID) -> Repayment:
        result = await self.db.execute(
            select(Repayment)
            .where(Repayment.id == repayment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        repayment = result.scalars().first()
        if repayment is None:
            raise NotFoundError("Repayment not found")
        return repayment

    async def _get_loan(self, loan_id: UUID) -> Loan:
        result = await self.db.execute(
            select(Loan)
            .where(Loan.id == loan_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        loan = result.scalars().first()
        if loan is None:
            raise NotFoundError("Loan not found")
        return loan

    async def submit_repayment(self, customer: Customer, data: RepaymentCreate) -> Repayment:
        """Record a repayment for admin review. Balances are untouched until it is approved."""
        loan = await self.db.get(Loan, data.loan_id)
        if loan is None or loan.customer_id != customer.id:
            raise NotFoundError("Loan not found")
        ensure_can("submit_repayment", loan.status)

        repayment = Repayment(
            loan_id=loan.id,
            customer_id=customer.id,
            amount=data.amount,
            proof_image=data.proof_image,
            status=RepaymentStatus.pending_review.value,
        )
        async with transaction(self.db):
            self.db.add(repayment)
        await self.db.refresh(repayment)
        self.logger.info("Repayment %s of %.2f submitted for loan %s", repayment.id, repayment.amount, loan.id)
        return repayment

    async def list_repayments(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
        loan_id: Optional[UUID] = None,
    ) -> Tuple[List[Repayment], int]:
        filters = []
        if status:
            filters.append(Repayment.status == status)
        if customer_id:
            filters.append(Repayment.customer_id == customer_id)
        if loan_id:
            filters.append(Repayment.loan_id == loan_id)
        total = (await self.db.execute(select(func.count(Repayment.id)).where(*filters))).scalar() or 0
        result = await self.db.execute(
            select(Repayment).where(*filters).order_by(Repayment.submitted_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    async def approve_repayment(self, repayment_id: UUID, admin_id: UUID, notes: Optional[str] = None) -> Tuple[Repayment, Loan]:
        """
        Apply a pending repayment to its loan: paid_amount grows, remaining_balance shrinks (never below 0),
        the loan becomes completed at zero or active otherwise, and a payment row is appended.
        A missing loan raises NotFoundError before anything is written.
        """
        repayment = await self._get_repayment(repayment_id)
        if repayment.status != RepaymentStatus.pending_review.value:
            raise StateConflictError("Repayment has already been reviewed")
        loan = await self._get_loan(repayment.loan_id)
        ensure_can("apply_repayment", loan.status)
        new_paid, new_remaining = apply_repayment(
            loan.total_loan_amount,
            loan.paid_amount,
            repayment.amount,
            loan.liquidation_discount or 0.0,
        )

        async with transaction(self.db):
            repayment.status = RepaymentStatus.approved.value
            repayment.reviewed_at = datetime.utcnow()
            repayment.reviewed_by = admin_id
            repayment.review_notes = notes
            loan.paid_amount = new_paid
            loan.remaining_balance = new_remaining
            loan.status = status_after_repayment(new_remaining)
            self.db.add(repayment)
            self.db.add(loan)
            self.db.add(LoanPayment(
                loan_id=loan.id,
                repayment_id=repayment.id,
                amount=repayment.amount,
                payment_type=LoanPaymentType.repayment.value,
                description="Approved repayment",
            ))
        self.logger.info(
            "Repayment %s approved by %s: loan %s paid %.2f remaining %.2f (%s)",
            repayment.id, admin_id, loan.id, loan.paid_amount, loan.remaining_balance, loan.status,
        )
        return repayment, loan

    async def reject_repayment(self, repayment_id: UUID, admin_id: UUID, notes: Optional[str] = None) -> Repayment:
        repayment = await self._get_repayment(repayment_id)
        if repayment.status != RepaymentStatus.pending_review.value:
            raise StateConflictError("Repayment has already been reviewed")
        async with transaction(self.db):
            repayment.status = RepaymentStatus.rejected.value
            repayment.reviewed_at = datetime.utcnow()
            repayment.reviewed_by = admin_id
            repayment.review_notes = notes or "Proof of payment not valid"
            self.db.add(repayment)
        self.logger.info("Repayment %s rejected by %s", repayment.id, admin_id)
        return repayment
