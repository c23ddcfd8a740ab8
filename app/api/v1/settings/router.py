from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.settings.schemas import (
    LoanSettingsHistoryItem,
    LoanSettingsHistoryResponse,
    LoanSettingsResponse,
    LoanSettingsUpdate,
)
from app.api.v1.settings.service import RateSettingsService
from app.core.deps import get_db, get_current_active_admin_user
from app.models.admin import Admin

router = APIRouter()


@router.get(
    "/loans",
    response_model=LoanSettingsResponse,
    status_code=status.HTTP_200_OK,
    summary="Get loan rates",
    description="Current interest and processing fee rates (percent). Defaults apply until an admin saves rates.",
)
async def get_loan_settings(
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    service = RateSettingsService(db)
    row = await service.get_settings_row()
    if row is not None:
        return LoanSettingsResponse.model_validate(row)
    rates = await service.get_current_rates()
    return LoanSettingsResponse(**rates.model_dump())


@router.patch(
    "/loans",
    response_model=LoanSettingsResponse,
    status_code=status.HTTP_200_OK,
    summary="Update loan rates",
    description="Change the rates used for future approvals. Loans already approved keep their rates.",
)
async def update_loan_settings(
    data: LoanSettingsUpdate,
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    service = RateSettingsService(db)
    row = await service.update_rates(data, current_admin.id)
    return LoanSettingsResponse.model_validate(row)


@router.get(
    "/loans/history",
    response_model=LoanSettingsHistoryResponse,
    status_code=status.HTTP_200_OK,
    summary="Loan rate history",
)
async def get_loan_settings_history(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    current_admin: Admin = Depends(get_current_active_admin_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await RateSettingsService(db).get_history(skip=skip, limit=limit)
    return LoanSettingsHistoryResponse(
        items=[LoanSettingsHistoryItem.model_validate(i) for i in items],
        total=total,
    )
