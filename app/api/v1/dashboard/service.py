import io
import logging
from datetime import datetime, timedelta
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.dashboard.schemas import (
    DashboardResponse,
    DashboardSummaryStats,
    LoanAnalytics,
    LoanStatusBreakdown,
)
from app.core.utils import ensure_non_negative_amount, round_money
from app.models.auction import Auction
from app.models.customer import Customer
from app.models.enums import AuctionStatus, LoanStatus, RepaymentStatus
from app.models.loan import Loan
from app.models.repayment import Repayment

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}

# Loans that carry priced terms
_PRICED_STATUSES = (
    LoanStatus.approved.value,
    LoanStatus.active.value,
    LoanStatus.completed.value,
    LoanStatus.liquidated.value,
)


class DashboardService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def get_dashboard_data(self, period: str = "30d") -> DashboardResponse:
        return DashboardResponse(
            summary=await self.get_summary_stats(),
            loans=await self.get_loan_analytics(period),
        )

    async def get_summary_stats(self) -> DashboardSummaryStats:
        total_customers = (await self.db.execute(select(func.count(Customer.id)))).scalar() or 0
        total_savings = (
            await self.db.execute(select(func.coalesce(func.sum(Customer.savings_balance), 0.0)))
        ).scalar() or 0.0
        active_loans = (
            await self.db.execute(
                select(func.count(Loan.id)).where(Loan.status.in_([LoanStatus.approved.value, LoanStatus.active.value]))
            )
        ).scalar() or 0
        pending_loans = (
            await self.db.execute(select(func.count(Loan.id)).where(Loan.status == LoanStatus.pending.value))
        ).scalar() or 0
        pending_repayments = (
            await self.db.execute(
                select(func.count(Repayment.id)).where(Repayment.status == RepaymentStatus.pending_review.value)
            )
        ).scalar() or 0
        active_auctions = (
            await self.db.execute(select(func.count(Auction.id)).where(Auction.status == AuctionStatus.active.value))
        ).scalar() or 0
        return DashboardSummaryStats(
            total_customers=total_customers,
            total_savings=round_money(total_savings),
            active_loans=active_loans,
            pending_loans=pending_loans,
            pending_repayments=pending_repayments,
            active_auctions=active_auctions,
        )

    async def get_loan_analytics(self, period: str = "30d", now: Optional[datetime] = None) -> LoanAnalytics:
        """
        Aggregate loans created within the period. Interest and fees only count once a loan is priced;
        pending processing fees are the fees of priced loans not yet marked paid.
        """
        days = PERIOD_DAYS.get(period, 30)
        since = (now or datetime.utcnow()) - timedelta(days=days)
        result = await self.db.execute(select(Loan).where(Loan.created_at >= since))
        loans = list(result.scalars().all())

        by_status: dict[str, LoanStatusBreakdown] = {}
        total_interest = total_fees = pending_fees = total_loan_amount = total_paid = outstanding = 0.0
        unpaid_fee_count = 0
        for loan in loans:
            entry = by_status.setdefault(loan.status, LoanStatusBreakdown(status=loan.status, count=0, total_principal=0.0))
            entry.count += 1
            entry.total_principal = round_money(entry.total_principal + loan.principal_amount)
            if loan.status not in _PRICED_STATUSES or not loan.has_details:
                continue
            total_interest += loan.interest_amount or 0.0
            total_fees += loan.processing_fee or 0.0
            total_loan_amount += loan.total_loan_amount or 0.0
            total_paid += loan.paid_amount or 0.0
            outstanding += ensure_non_negative_amount(loan.remaining_balance)
            if not loan.processing_fee_paid:
                pending_fees += loan.processing_fee or 0.0
                unpaid_fee_count += 1

        count = len(loans)
        total_principal = sum(l.principal_amount for l in loans)
        return LoanAnalytics(
            period=period if period in PERIOD_DAYS else "30d",
            since=since,
            total_loans=count,
            total_principal=round_money(total_principal),
            total_interest=round_money(total_interest),
            total_processing_fees=round_money(total_fees),
            pending_processing_fees=round_money(pending_fees),
            unpaid_fee_count=unpaid_fee_count,
            total_loan_amount=round_money(total_loan_amount),
            total_paid=round_money(total_paid),
            total_outstanding=round_money(outstanding),
            average_loan_amount=round_money(total_principal / count) if count else 0.0,
            average_duration_months=round(sum(l.duration_months for l in loans) / count, 1) if count else 0.0,
            by_status=sorted(by_status.values(), key=lambda b: b.status),
        )

    async def export_loans_to_excel(self, status: Optional[str] = None) -> bytes:
        """Export loans to Excel (.xlsx), optionally filtered by status."""
        stmt = select(Loan).order_by(Loan.created_at.desc())
        if status:
            stmt = stmt.where(Loan.status == status)
        loans = (await self.db.execute(stmt)).scalars().all()

        wb = Workbook()
        ws = wb.active
        ws.title = "Loans"

        headers = [
            "Loan ID",
            "Customer ID",
            "Borrower",
            "Status",
            "Principal",
            "Duration (months)",
            "Interest Rate (%)",
            "Interest",
            "Processing Fee",
            "Fee Paid",
            "Total Loan Amount",
            "Monthly Installment",
            "Paid",
            "Remaining",
            "Approved At",
            "Created At",
        ]
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal="center", wrap_text=True)

        for row_idx, loan in enumerate(loans, start=2):
            approved_str = loan.approved_at.strftime("%Y-%m-%d %H:%M:%S") if loan.approved_at else ""
            created_str = loan.created_at.strftime("%Y-%m-%d %H:%M:%S") if loan.created_at else ""
            values = [
                str(loan.id),
                str(loan.customer_id),
                loan.borrower_full_name,
                loan.status,
                loan.principal_amount,
                loan.duration_months,
                loan.interest_rate,
                loan.interest_amount,
                loan.processing_fee,
                "yes" if loan.processing_fee_paid else "no",
                loan.total_loan_amount,
                loan.monthly_installment,
                loan.paid_amount,
                ensure_non_negative_amount(loan.remaining_balance) if loan.has_details else None,
                approved_str,
                created_str,
            ]
            for col, value in enumerate(values, start=1):
                ws.cell(row=row_idx, column=col, value=value)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer.getvalue()
