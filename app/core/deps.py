from typing import AsyncGenerator
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import async_session_maker
from app.core.security import decode_access_token
from app.core.exceptions import AppException
from app.models.admin import Admin
from app.models.customer import Customer
from app.models.enums import MembershipStatus, Role


bearer_scheme = HTTPBearer(auto_error=False)

CUSTOMER_ROLE = "customer"
ADMIN_ROLES = {Role.admin.value, Role.super_admin.value}


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


def _token_payload(credentials: HTTPAuthorizationCredentials | None) -> dict:
    if credentials is None or not credentials.credentials:
        AppException().raise_401("Not authenticated")
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        AppException().raise_401("Invalid or expired token. Please login again.")
    return payload


def _subject_id(payload: dict) -> UUID:
    subject = payload.get("sub")
    if subject is None:
        AppException().raise_401("Could not validate credentials")
    try:
        return UUID(subject)
    except (ValueError, TypeError):
        AppException().raise_401("Could not validate credentials")


async def get_current_active_admin_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Admin:
    """Admin behind the bearer token. Customer tokens are refused with 403."""
    payload = _token_payload(credentials)
    role = payload.get("role")
    if role not in ADMIN_ROLES:
        AppException().raise_403("Not an admin user")

    admin = await db.get(Admin, _subject_id(payload))
    if admin is None:
        AppException().raise_401("Could not validate credentials")
    if not admin.is_active:
        AppException().raise_403("Admin account is inactive")
    return admin


async def get_current_customer(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Customer:
    """Get the current authenticated customer from JWT token."""
    payload = _token_payload(credentials)
    role = payload.get("role")
    if role != CUSTOMER_ROLE:
        AppException().raise_403("Customer token required. Please login as a customer.")

    customer = await db.get(Customer, _subject_id(payload))
    if customer is None:
        AppException().raise_401("Customer not found. Please login again.")

    if customer.membership_status == MembershipStatus.suspended.value:
        AppException().raise_403("Customer account is suspended. Please contact support.")

    return customer
