import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.v1.admins.schemas import AdminCreate, AdminLogin
from app.core.database import transaction
from app.core.exceptions import AppException
from app.models.admin import Admin
from app.core.security import get_password_hash, verify_password


class AdminService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def get_admin_by_email(self, email: str) -> Optional[Admin]:
        result = await self.db.execute(select(Admin).filter(Admin.email == email))
        return result.scalars().first()

    async def create_admin(self, admin_data: AdminCreate) -> Admin:
        db_admin = await self.get_admin_by_email(admin_data.email)
        if db_admin:
            AppException().raise_400("Email already registered")

        hashed_password = get_password_hash(admin_data.password)
        new_admin = Admin(
            **admin_data.model_dump(exclude={'password', 'role'}),
            password_hash=hashed_password,
            role=admin_data.role.value,
        )
        async with transaction(self.db):
            self.db.add(new_admin)
        await self.db.refresh(new_admin)
        self.logger.info("Admin %s created with role %s", new_admin.email, new_admin.role)
        return new_admin

    async def authenticate_admin(self, admin_login_data: AdminLogin) -> Optional[Admin]:
        admin = await self.get_admin_by_email(admin_login_data.email)
        if not admin or not verify_password(admin_login_data.password, admin.password_hash):
            return None
        if admin.is_active:
            async with transaction(self.db):
                admin.last_login_at = datetime.utcnow()
                self.db.add(admin)
        return admin
