"""
Startup utilities for the application.
"""
import logging
from sqlalchemy import select, func, text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.core.config import settings
from app.core.database import get_async_session_maker_instance
from app.models.admin import Admin
from app.core.security import get_password_hash
from app.models.enums import Role

logger = logging.getLogger(__name__)


async def ensure_admins_table_exists(session) -> bool:
    try:
        await session.execute(text("SELECT 1 FROM admins LIMIT 1"))
        return True
    except (ProgrammingError, OperationalError):
        logger.warning("Admins table not found. Please run 'alembic upgrade head' to create it.")
        return False


async def ensure_default_admin(session_maker=None) -> None:
    """
    Create the bootstrap super admin from DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD
    when the admins table is empty. Failures are logged so the application still starts.
    """
    async_session_maker = session_maker or get_async_session_maker_instance()
    async with async_session_maker() as session:
        try:
            if not await ensure_admins_table_exists(session):
                return

            result = await session.execute(select(func.count(Admin.id)))
            admin_count = result.scalar()
            if admin_count:
                logger.info(f"Found {admin_count} admin(s) in database. Skipping default admin creation.")
                return

            logger.info("No admin found in database. Creating default admin...")
            default_admin = Admin(
                email=settings.DEFAULT_ADMIN_EMAIL,
                password_hash=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
                full_name="Super Admin",
                role=Role.super_admin.value,
                is_active=True,
            )
            session.add(default_admin)
            await session.commit()
            logger.info(f"Default admin created successfully with email: {settings.DEFAULT_ADMIN_EMAIL}")
        except (OperationalError, ProgrammingError) as e:
            await session.rollback()
            logger.warning(
                f"Database error during admin check/creation. Error: {e}. "
                f"Please ensure database is accessible and migrations are run."
            )
