import asyncio
import logging
from sqlalchemy import text
from splitledger.core.config import settings
from splitledger.db.session import engine

logger = logging.getLogger(__name__)


async def wait_for_db(retries: int = settings.DB_CONNECT_RETRIES, delay: float = 2):
    for i in range(retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("SplitLedger : Database connected")
            return
        except Exception as e:
            logger.warning(
                "SplitLedger : Database not ready | [ %d/%d ] %s → retrying...",
                i + 1, retries, e,
            )
            await asyncio.sleep(delay)

    raise RuntimeError("Database unreachable after retries")
