import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.exceptions import ConcurrencyConflictError, InternalError

logger = logging.getLogger(__name__)


def get_database_url():
    db_url = settings.DATABASE_URL
    if "postgresql" in db_url and "sslmode" not in db_url and settings.ENVIRONMENT != "development":
        return f"{db_url}?sslmode=require"
    return db_url


DATABASE_URL = get_database_url()
engine = create_async_engine(DATABASE_URL, echo=settings.SQL_ECHO)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()


def get_async_session_maker_instance():
    """Get the async session maker instance."""
    return async_session_maker


@asynccontextmanager
async def transaction(db: AsyncSession):
    """
    Commit once when the block finishes; roll back on any error.
    A versioned row changed by another request surfaces as ConcurrencyConflictError;
    other persistence failures surface as InternalError.
    """
    try:
        yield db
        await db.commit()
    except StaleDataError as e:
        await db.rollback()
        raise ConcurrencyConflictError() from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Transaction failed: %s", e)
        raise InternalError("Could not save changes") from e
    except BaseException:
        await db.rollback()
        raise
