"""Expiration sweeper.

Purges expired attachments across all pads. Runs as an asyncio task within
the FastAPI process: once at startup to catch any backlog, then on a fixed
interval. Best effort: a failure on one pad is logged and the sweep moves on.
"""
import asyncio
import logging
import traceback
from typing import TYPE_CHECKING

from sqlalchemy import distinct, select

from securepad.models.attachment import Attachment
from securepad.services.attachment_store import purge_expired

if TYPE_CHECKING:
    from securepad.context import AppContext

logger = logging.getLogger(__name__)


async def sweep_expired(ctx: "AppContext") -> int:
    """Run purge_expired for every pad that owns attachments. Returns files removed."""
    async with ctx.session_factory() as db:
        result = await db.execute(select(distinct(Attachment.pad_id)))
        pad_ids = list(result.scalars().all())

    removed = 0
    for pad_id in pad_ids:
        try:
            async with ctx.session_factory() as db:
                removed += await purge_expired(ctx, db, pad_id)
        except Exception as e:
            logger.error(f"Cleanup failed for pad {pad_id}: {e}")

    logger.info(f"Cleanup complete. Removed {removed} expired file(s) across {len(pad_ids)} pad(s)")
    return removed


async def sweeper_loop(ctx: "AppContext"):
    """Main sweeper loop. Sweeps immediately, then every SWEEP_INTERVAL_SECONDS."""
    interval = ctx.settings.SWEEP_INTERVAL_SECONDS
    logger.info(f"Expiration sweeper started (interval {interval:.0f}s)")
    while True:
        try:
            await sweep_expired(ctx)
        except Exception as e:
            logger.error(f"Sweeper error: {e}")
            logger.error(traceback.format_exc())

        await asyncio.sleep(interval)
