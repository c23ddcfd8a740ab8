from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.investments.schemas import InvestmentCreate, InvestmentListResponse, InvestmentResponse
from app.api.v1.investments.service import InvestmentService
from app.core.deps import get_db, get_current_customer
from app.models.customer import Customer

router = APIRouter()


@router.post(
    "/",
    response_model=InvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create investment",
    description="Buy an investment paid from your savings balance.",
)
async def create_investment(
    data: InvestmentCreate,
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    investment = await InvestmentService(db).create_investment(current_customer, data)
    return InvestmentResponse.model_validate(investment)


@router.get(
    "/",
    response_model=InvestmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="My investments",
)
async def list_my_investments(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_customer: Customer = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    items, total = await InvestmentService(db).list_investments(current_customer.id, skip=skip, limit=limit)
    return InvestmentListResponse(items=[InvestmentResponse.model_validate(i) for i in items], total=total)
