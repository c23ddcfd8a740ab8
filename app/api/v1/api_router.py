from fastapi import APIRouter

from app.api.v1.health import router as health_router
from app.api.v1.admins.router import router as admins_router
from app.api.v1.customers.router import router as customers_router
from app.api.v1.savings.router import router as savings_router
from app.api.v1.withdrawals.router import router as withdrawals_router
from app.api.v1.settings.router import router as settings_router
from app.api.v1.loans.router import router as loans_router
from app.api.v1.repayments.router import router as repayments_router
from app.api.v1.investments.router import router as investments_router
from app.api.v1.auctions.router import router as auctions_router
from app.api.v1.dashboard.router import router as dashboard_router

api_router = APIRouter()
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(admins_router, prefix="/admins", tags=["admins"])
api_router.include_router(customers_router, prefix="/customers")  # Tags are defined in the router itself
api_router.include_router(savings_router, prefix="/savings")
api_router.include_router(withdrawals_router, prefix="/withdrawals")
api_router.include_router(settings_router, prefix="/settings", tags=["admin-settings"])
api_router.include_router(loans_router, prefix="/loans")
api_router.include_router(repayments_router, prefix="/repayments")
api_router.include_router(investments_router, prefix="/investments", tags=["investments"])
api_router.include_router(auctions_router, prefix="/auctions")
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["admin-dashboard"])
