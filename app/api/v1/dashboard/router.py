from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.dashboard.schemas import DashboardResponse, LoanAnalytics, Period
from app.api.v1.dashboard.service import DashboardService
from app.core.deps import get_db, get_current_active_admin_user
from app.models.admin import Admin
from app.models.enums import LoanStatus

router = APIRouter()


@router.get(
    "/",
    response_model=DashboardResponse,
    status_code=status.HTTP_200_OK,
    summary="Get admin dashboard data",
    description="Summary counts plus loan analytics for the period. Admin only.",
)
async def get_dashboard(
    period: Period = Query("30d"),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService(db).get_dashboard_data(period)


@router.get(
    "/loans",
    response_model=LoanAnalytics,
    status_code=status.HTTP_200_OK,
    summary="Loan analytics",
    description="Principal, interest, fees and outstanding balances of loans created within the period (7d, 30d, 90d, 1y).",
)
async def get_loan_analytics(
    period: Period = Query("30d"),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService(db).get_loan_analytics(period)


@router.get(
    "/loans/export",
    status_code=status.HTTP_200_OK,
    summary="Export loans to Excel",
    response_class=Response,
)
async def export_loans(
    status_filter: Optional[LoanStatus] = Query(None, alias="status"),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    content = await DashboardService(db).export_loans_to_excel(status=status_filter.value if status_filter else None)
    filename = "loans_export.xlsx"
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
