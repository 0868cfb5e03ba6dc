# app/services/anchor_worker.py
import asyncio
import logging

from pymongo import ASCENDING

from app.core.config import settings
from app.services.anchor_service import HashChainAnchorService

logger = logging.getLogger(__name__)


async def retry_pending_anchors(mongo_db, batch_size: int | None = None) -> int:
    """
    One pass over `anchor_outbox`: append each queued anchor with its
    original snapshot timestamp, drop it on success, count the attempt
    otherwise. Returns how many anchors were appended.
    """
    batch_size = batch_size or settings.ANCHOR_OUTBOX_BATCH_SIZE
    service = HashChainAnchorService(mongo_db)

    cursor = mongo_db.anchor_outbox.find({}).sort("created_at", ASCENDING).limit(batch_size)
    pending = await cursor.to_list(length=batch_size)

    appended = 0
    for item in pending:
        try:
            existing = await service.dsa.get_anchor_for_record(item["record_type"], item["record_id"])
            if existing is not None:
                # the first write landed but was reported as failed
                logger.info("%s %s already anchored as #%s, dropping outbox entry",
                            item["record_type"], item["record_id"], existing.get("block_number"))
                await mongo_db.anchor_outbox.delete_one({"_id": item["_id"]})
                continue

            anchor = await service.append(
                item["record_type"],
                item["record_id"],
                item.get("summary"),
                item.get("source"),
                item["hashed_at"],
            )
        except Exception as e:
            logger.warning("Outbox anchor for %s %s failed again: %s",
                           item.get("record_type"), item.get("record_id"), e)
            await mongo_db.anchor_outbox.update_one(
                {"_id": item["_id"]},
                {"$inc": {"attempts": 1}, "$set": {"last_error": str(e)}},
            )
            continue

        await mongo_db.anchor_outbox.delete_one({"_id": item["_id"]})
        appended += 1
        logger.info("Outbox anchor #%s appended for %s %s",
                    anchor.block_number, anchor.record_type, anchor.record_id)

    return appended


async def retry_pending_anchors_loop(mongo_db, poll_interval: int | None = None):
    """
    Background worker:
    - Pulls anchors that failed on the request path from `anchor_outbox`
    - Appends them to their hash chain
    """
    poll_interval = poll_interval or settings.ANCHOR_OUTBOX_POLL_SECONDS

    # 🛡️ Safety guard
    if not isinstance(poll_interval, (int, float)) or poll_interval <= 0:
        poll_interval = 30

    while True:
        try:
            await retry_pending_anchors(mongo_db)
        except Exception:
            logger.exception("Error in retry_pending_anchors_loop")

        await asyncio.sleep(poll_interval)
