import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.v1.loans.schemas import LoanApplyRequest
from app.api.v1.settings.service import RateSettingsService
from app.core import email as email_module
from app.core.config import settings
from app.core.database import transaction
from app.core.exceptions import NotFoundError, ValidationError
from app.core.ledger import post_entry
from app.core.loan_calculator import compute_loan_details, liquidation_credit
from app.core.loan_lifecycle import ensure_can
from app.core.loan_schedule import ScheduleEntry, build_repayment_schedule
from app.core.notification_service import notify, scope_key_for_loan
from app.core.utils import round_money
from app.models.customer import Customer
from app.models.enums import LedgerAccount, LedgerEntryType, LoanPaymentType, LoanStatus
from app.models.loan import Loan
from app.models.loan_payment import LoanPayment


class LoanService:
    def __init__(self, db: AsyncSession, rate_reader: Optional[RateSettingsService] = None):
        self.db = db
        # Anything with `async get_current_rates() -> RateSettings`
        self.rate_reader = rate_reader or RateSettingsService(db)
        self.logger = logging.getLogger(__name__)

    async def get_loan(self, loan_id: UUID, for_update: bool = False, with_payments: bool = False) -> Loan:
        stmt = select(Loan).where(Loan.id == loan_id)
        if with_payments:
            stmt = stmt.options(selectinload(Loan.payments))
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        loan = result.scalars().first()
        if loan is None:
            raise NotFoundError("Loan not found")
        return loan

    async def get_customer_loan(self, loan_id: UUID, customer_id: UUID) -> Loan:
        """Loan owned by the customer; other customers' loans read as not found."""
        loan = await self.get_loan(loan_id, with_payments=True)
        if loan.customer_id != customer_id:
            raise NotFoundError("Loan not found")
        return loan

    async def list_loans(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
    ) -> Tuple[List[Loan], int]:
        stmt = select(Loan)
        count_stmt = select(func.count(Loan.id))
        if status:
            stmt = stmt.where(Loan.status == status)
            count_stmt = count_stmt.where(Loan.status == status)
        if customer_id:
            stmt = stmt.where(Loan.customer_id == customer_id)
            count_stmt = count_stmt.where(Loan.customer_id == customer_id)
        total = (await self.db.execute(count_stmt)).scalar() or 0
        result = await self.db.execute(stmt.order_by(Loan.created_at.desc()).offset(skip).limit(limit))
        return list(result.scalars().all()), total

    async def apply_for_loan(self, customer: Customer, data: LoanApplyRequest) -> Loan:
        """Create a pending application. Nothing is priced or credited until approval."""
        if data.principal_amount < settings.MIN_LOAN_AMOUNT or data.principal_amount > settings.MAX_LOAN_AMOUNT:
            raise ValidationError(
                f"Loan amount must be between {settings.MIN_LOAN_AMOUNT:,.2f} and {settings.MAX_LOAN_AMOUNT:,.2f}"
            )
        if data.guarantor_id is not None:
            if data.guarantor_id == customer.id:
                raise ValidationError("You cannot guarantee your own loan")
            if await self.db.get(Customer, data.guarantor_id) is None:
                raise NotFoundError("Guarantor not found")

        loan = Loan(
            customer_id=customer.id,
            principal_amount=data.principal_amount,
            duration_months=data.duration_months,
            purpose=data.purpose,
            borrower_full_name=data.borrower_full_name,
            borrower_phone=data.borrower_phone,
            borrower_email=data.borrower_email,
            guarantor_id=data.guarantor_id,
            guarantor_coverage=data.guarantor_coverage,
            status=LoanStatus.pending.value,
        )
        async with transaction(self.db):
            self.db.add(loan)
        await self.db.refresh(loan)
        self.logger.info("Loan application %s submitted by customer %s", loan.id, customer.id)
        return loan

    async def approve_loan(self, loan_id: UUID, admin_id: UUID) -> Loan:
        """
        Price the loan with the rates in effect now and freeze the result on it.
        The borrower's total_loans is credited with the principal; the approval email goes out after commit.
        """
        loan = await self.get_loan(loan_id, for_update=True)
        ensure_can("approve", loan.status)
        rates = await self.rate_reader.get_current_rates()
        details = compute_loan_details(
            loan.principal_amount,
            loan.duration_months,
            rates.interest_rate,
            rates.processing_fee_rate,
        )

        async with transaction(self.db):
            loan.interest_rate = details.interest_rate
            loan.processing_fee_rate = details.processing_fee_rate
            loan.processing_fee = details.processing_fee
            loan.interest_amount = details.interest_amount
            loan.total_loan_amount = details.total_loan_amount
            loan.monthly_installment = details.monthly_installment
            loan.remaining_balance = details.remaining_balance
            loan.paid_amount = details.paid_amount
            loan.processing_fee_paid = details.processing_fee_paid
            loan.liquidation_discount = 0.0
            loan.status = LoanStatus.approved.value
            loan.approved_at = datetime.utcnow()
            loan.approved_by = admin_id
            self.db.add(loan)
            await post_entry(
                self.db,
                loan.customer_id,
                LedgerAccount.loans,
                loan.principal_amount,
                LedgerEntryType.loan_approval,
                description="Loan approved",
                reference_id=loan.id,
            )
        self.logger.info(
            "Loan %s approved by %s: total %.2f over %d months at %.2f%%",
            loan.id, admin_id, loan.total_loan_amount, loan.duration_months, loan.interest_rate,
        )
        await self._send_approval_email(loan)
        return loan

    async def reject_loan(self, loan_id: UUID, admin_id: UUID, reason: Optional[str] = None) -> Loan:
        loan = await self.get_loan(loan_id, for_update=True)
        ensure_can("reject", loan.status)
        async with transaction(self.db):
            loan.status = LoanStatus.rejected.value
            self.db.add(loan)
        self.logger.info("Loan %s rejected by %s (%s)", loan.id, admin_id, reason or "no reason given")
        return loan

    async def liquidate_loan(self, loan_id: UUID, admin_id: UUID) -> Loan:
        """
        Early payoff: half the outstanding balance is credited as paid and the other half is forgiven.
        Only approved loans qualify; active loans raise StateConflictError.
        """
        loan = await self.get_loan(loan_id, for_update=True)
        ensure_can("liquidate", loan.status)
        half_credit = liquidation_credit(loan.remaining_balance)

        async with transaction(self.db):
            loan.paid_amount = round_money(loan.paid_amount + half_credit)
            loan.liquidation_discount = round_money((loan.liquidation_discount or 0.0) + half_credit)
            loan.remaining_balance = 0.0
            loan.status = LoanStatus.liquidated.value
            self.db.add(loan)
            self.db.add(LoanPayment(
                loan_id=loan.id,
                amount=half_credit,
                payment_type=LoanPaymentType.liquidation.value,
                description="Loan liquidation (50% credit)",
            ))
            await post_entry(
                self.db,
                loan.customer_id,
                LedgerAccount.loans,
                -half_credit,
                LedgerEntryType.loan_liquidation,
                description="Loan liquidation credit",
                reference_id=loan.id,
            )
        self.logger.info("Loan %s liquidated by %s: credit %.2f", loan.id, admin_id, half_credit)
        return loan

    async def set_processing_fee_paid(self, loan_id: UUID, paid: bool) -> Loan:
        """Admin override of the fee flag; the loan status is left alone."""
        loan = await self.get_loan(loan_id, for_update=True)
        async with transaction(self.db):
            loan.processing_fee_paid = paid
            self.db.add(loan)
        self.logger.info("Loan %s processing_fee_paid set to %s", loan.id, paid)
        return loan

    async def pay_processing_fee(self, loan_id: UUID, customer_id: UUID) -> Loan:
        """Borrower pays the fee on an approved loan, which activates it."""
        loan = await self.get_loan(loan_id, for_update=True)
        if loan.customer_id != customer_id:
            raise NotFoundError("Loan not found")
        ensure_can("pay_processing_fee", loan.status)
        if loan.processing_fee_paid:
            raise ValidationError("Processing fee already paid")
        async with transaction(self.db):
            loan.processing_fee_paid = True
            loan.status = LoanStatus.active.value
            self.db.add(loan)
        self.logger.info("Processing fee %.2f paid for loan %s", loan.processing_fee or 0.0, loan.id)
        return loan

    async def resend_approval_email(self, loan_id: UUID) -> bool:
        loan = await self.get_loan(loan_id)
        ensure_can("resend_approval_email", loan.status)
        return await self._send_approval_email(loan)

    async def get_schedule(self, loan_id: UUID) -> Tuple[Loan, List[ScheduleEntry]]:
        loan = await self.get_loan(loan_id)
        if not loan.has_details:
            raise ValidationError("Loan has not been approved yet")
        entries = build_repayment_schedule(
            loan.total_loan_amount,
            loan.monthly_installment,
            loan.duration_months,
            loan.approved_at or loan.created_at,
        )
        return loan, entries

    async def _send_approval_email(self, loan: Loan) -> bool:
        return await notify(
            self.db,
            "loan_approved",
            scope_key_for_loan(loan.id),
            loan.borrower_email,
            email_module.send_loan_approval_email(
                borrower_email=loan.borrower_email,
                borrower_name=loan.borrower_full_name,
                principal_amount=loan.principal_amount,
                interest_amount=loan.interest_amount,
                processing_fee=loan.processing_fee,
                total_loan_amount=loan.total_loan_amount,
                monthly_installment=loan.monthly_installment,
                duration_months=loan.duration_months,
            ),
        )
