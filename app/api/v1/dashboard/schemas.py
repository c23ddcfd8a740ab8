from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel


Period = Literal["7d", "30d", "90d", "1y"]


class LoanStatusBreakdown(BaseModel):
    status: str
    count: int
    total_principal: float


class LoanAnalytics(BaseModel):
    """Loan figures for applications created within the period."""
    period: Period
    since: datetime
    total_loans: int
    total_principal: float
    total_interest: float
    total_processing_fees: float
    pending_processing_fees: float
    unpaid_fee_count: int
    total_loan_amount: float
    total_paid: float
    total_outstanding: float
    average_loan_amount: float
    average_duration_months: float
    by_status: List[LoanStatusBreakdown]


class DashboardSummaryStats(BaseModel):
    """Summary statistics for admin dashboard."""
    total_customers: int
    total_savings: float
    active_loans: int
    pending_loans: int
    pending_repayments: int
    active_auctions: int


class DashboardResponse(BaseModel):
    summary: DashboardSummaryStats
    loans: LoanAnalytics
