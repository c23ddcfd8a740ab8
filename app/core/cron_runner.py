"""
Settle expired auctions in the background (non-blocking).
Started on app startup; cancelled on shutdown.
"""
import asyncio
import logging

from app.api.v1.auctions.service import AuctionService
from app.core.config import settings
from app.core.database import get_async_session_maker_instance

logger = logging.getLogger(__name__)


async def settle_expired_auctions_once() -> dict:
    async_session_maker = get_async_session_maker_instance()
    async with async_session_maker() as session:
        return await AuctionService(session).settle_expired()


async def run_auction_settlement_loop() -> None:
    """Loop: run once after short delay, then every configured interval (minutes)."""
    interval_minutes = settings.AUCTION_SETTLEMENT_INTERVAL_MINUTES
    interval_seconds = max(60.0, interval_minutes * 60)  # minimum 1 minute
    logger.info("Auction settlement loop started (interval=%.2f minutes)", interval_minutes)
    # Small delay so app is fully up before first run
    await asyncio.sleep(10)
    while True:
        try:
            await settle_expired_auctions_once()
            await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            logger.info("Auction settlement loop cancelled")
            break
        except Exception as e:
            logger.exception("Auction settlement loop error: %s", e)
            await asyncio.sleep(interval_seconds)
