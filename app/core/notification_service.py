"""
Fire-and-forget notifications: send an email and record the attempt in NotificationLog.
A failed send is logged and never raises into the caller, so it cannot undo committed work.
"""
import logging
from typing import Awaitable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification_log import NotificationLog

logger = logging.getLogger(__name__)


def scope_key_for_loan(loan_id) -> str:
    return f"loan:{loan_id}"


def scope_key_for_customer(customer_id) -> str:
    return f"customer:{customer_id}"


def scope_key_for_auction(auction_id) -> str:
    return f"auction:{auction_id}"


async def was_notification_sent(
    db: AsyncSession,
    notification_type: str,
    scope_key: str,
) -> bool:
    """Return True if this (notification_type, scope_key) was already delivered."""
    result = await db.execute(
        select(NotificationLog.id).where(
            NotificationLog.notification_type == notification_type,
            NotificationLog.scope_key == scope_key,
            NotificationLog.delivered.is_(True),
        ).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def notify(
    db: AsyncSession,
    notification_type: str,
    scope_key: str,
    recipient: str,
    send: Awaitable[bool],
) -> bool:
    """
    Await the sender coroutine and log the attempt.
    Call after the business transaction has committed; this commits only the log row.
    """
    try:
        delivered = bool(await send)
    except Exception as e:
        logger.exception("Notification %s to %s raised: %s", notification_type, recipient, e)
        delivered = False

    if not delivered:
        logger.warning("Notification %s not delivered: scope_key=%s recipient=%s", notification_type, scope_key, recipient)

    db.add(NotificationLog(
        notification_type=notification_type,
        scope_key=scope_key,
        recipient=recipient,
        delivered=delivered,
    ))
    try:
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Could not record notification %s for %s: %s", notification_type, scope_key, e)
    return delivered
