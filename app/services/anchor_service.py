# app/services/anchor_service.py
"""
Hash-Chain Anchor Service.

Makes submitted records tamper-evident by appending one SHA-256 anchor
per record to an append-only chain kept per record type.

Appends for a record type are serialized behind an asyncio.Lock, and the
unique (record_type, prev_hash) index rejects a second successor to the
same tail written by another process; on rejection the tail is re-read
and the append retried.

Anchoring is best-effort: anchor() never raises. Failed appends are
queued in `anchor_outbox` for the retry worker.
"""

import asyncio
import hashlib
import json
import logging
import re
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.core.dsa.mongo_dsa import MongoDSA
from app.db.models.anchor_outbox_model import PendingAnchor
from app.db.models.block_anchor_model import GENESIS_HASH, HASH_PATTERN, HashAnchor

logger = logging.getLogger(__name__)

# One lock per chain, shared by every service instance in this process
_chain_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

_hash_re = re.compile(HASH_PATTERN)


class AnchorAppendConflict(Exception):
    """Raised when the chain tail kept moving for every retry."""
    pass


# --------------------------------------------------
# HASHING
# --------------------------------------------------
def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with milliseconds and a Z suffix."""
    return datetime.utcnow().isoformat(timespec="milliseconds") + "Z"


def canonical_snapshot(record_id: str, summary: Optional[str],
                       timestamp: str, source: Optional[str]) -> str:
    # field set and order are part of the hash contract
    return json.dumps(
        {"id": record_id, "summary": summary, "timestamp": timestamp, "source": source},
        separators=(",", ":"),
        ensure_ascii=False,
    )


def compute_record_hash(record_id: str, summary: Optional[str],
                        timestamp: str, source: Optional[str]) -> str:
    snapshot = canonical_snapshot(record_id, summary, timestamp, source)
    return hashlib.sha256(snapshot.encode("utf-8")).hexdigest()


# --------------------------------------------------
# SERVICE
# --------------------------------------------------
class HashChainAnchorService:
    def __init__(self, db):
        self.db = db
        self.dsa = MongoDSA(db)

    async def anchor(self, record_type: str, record_id: str,
                     canonical_fields: Optional[Dict[str, Any]] = None) -> Optional[HashAnchor]:
        """
        Anchor one record. `canonical_fields` carries "summary" and "source".
        Returns the appended anchor, or None when anchoring failed.
        """
        record_id = str(record_id)
        canonical_fields = canonical_fields or {}
        summary = canonical_fields.get("summary")
        source = canonical_fields.get("source")
        hashed_at = utc_timestamp()

        try:
            anchor = await self.append(record_type, record_id, summary, source, hashed_at)
        except Exception as e:
            logger.exception("Error creating hash anchor for %s %s", record_type, record_id)
            await self._enqueue(record_type, record_id, summary, source, hashed_at, e)
            return None

        logger.info("Created hash anchor #%s for %s %s",
                    anchor.block_number, record_type, record_id)
        return anchor

    async def append(self, record_type: str, record_id: str, summary: Optional[str],
                     source: Optional[str], hashed_at: str) -> HashAnchor:
        """Append to the chain; raises on failure."""
        record_hash = compute_record_hash(record_id, summary, hashed_at, source)

        async with _chain_locks[record_type]:
            for attempt in range(1, settings.ANCHOR_APPEND_RETRIES + 1):
                latest = await self.dsa.get_latest_anchor(record_type)
                anchor = self._next_anchor(latest, record_type, record_id, record_hash, hashed_at)
                try:
                    await self.db.block_anchors.insert_one(anchor.model_dump())
                    return anchor
                except DuplicateKeyError:
                    logger.warning("Chain tail for %s moved (attempt %d/%d), retrying",
                                   record_type, attempt, settings.ANCHOR_APPEND_RETRIES)

        raise AnchorAppendConflict(
            f"Could not append to {record_type} chain after {settings.ANCHOR_APPEND_RETRIES} attempts"
        )

    @staticmethod
    def _next_anchor(latest: Optional[dict], record_type: str, record_id: str,
                     record_hash: str, hashed_at: str) -> HashAnchor:
        now = datetime.utcnow()
        # Mongo keeps millisecond precision
        now = now.replace(microsecond=now.microsecond // 1000 * 1000)

        if latest is None:
            prev_hash = GENESIS_HASH
            block_number = 0
        else:
            prev_hash = latest["current_hash"]
            block_number = (latest.get("block_number") or 0) + 1
            # created_at orders the chain, keep it strictly increasing
            if latest.get("created_at") and now <= latest["created_at"]:
                now = latest["created_at"] + timedelta(microseconds=1000)

        return HashAnchor(
            record_type=record_type,
            record_id=record_id,
            prev_hash=prev_hash,
            record_hash=record_hash,
            current_hash=record_hash,
            block_number=block_number,
            hashed_at=hashed_at,
            created_at=now,
        )

    async def _enqueue(self, record_type: str, record_id: str, summary: Optional[str],
                       source: Optional[str], hashed_at: str, error: Exception) -> None:
        pending = PendingAnchor(
            record_type=record_type,
            record_id=record_id,
            summary=summary,
            source=source,
            hashed_at=hashed_at,
            last_error=str(error),
        )
        try:
            await self.db.anchor_outbox.insert_one(pending.model_dump())
            logger.info("Queued anchor for %s %s in outbox", record_type, record_id)
        except Exception:
            logger.exception("Could not queue anchor for %s %s; anchor dropped",
                             record_type, record_id)

    # --------------------------------------------------
    # VERIFICATION
    # --------------------------------------------------
    async def verify_chain(self, record_type: str) -> dict:
        """
        Walk a chain oldest-first and report every broken link.
        """
        anchors = await self.dsa.get_anchor_chain(record_type)
        errors: List[dict] = []
        previous = None

        for i, anchor in enumerate(anchors):
            found = []

            current_hash = anchor.get("current_hash") or ""
            if not all(_hash_re.fullmatch(h or "") for h in (current_hash, anchor.get("prev_hash"))):
                found.append("malformed_hash")

            if anchor.get("record_hash") != current_hash:
                found.append("record_hash_mismatch")

            expected_prev = previous.get("current_hash") if previous else GENESIS_HASH
            if anchor.get("prev_hash") != expected_prev:
                found.append("genesis_violation" if previous is None else "broken_link")

            if previous and anchor.get("created_at") and previous.get("created_at") \
                    and anchor["created_at"] <= previous["created_at"]:
                found.append("timestamp_ordering_violation")

            errors.extend(
                {"index": i, "record_id": anchor.get("record_id"), "error": e} for e in found
            )
            previous = anchor

        result = {
            "record_type": record_type,
            "verified": len(errors) == 0,
            "chain_length": len(anchors),
            "head_hash": anchors[-1].get("current_hash") if anchors else None,
            "errors": errors,
        }

        if errors:
            logger.warning("Chain %s failed verification with %d errors", record_type, len(errors))
        return result

    @staticmethod
    def verify_record(anchor: dict, summary: Optional[str], source: Optional[str]) -> bool:
        """Recompute an anchor's record hash from the record's current fields."""
        expected = compute_record_hash(anchor["record_id"], summary, anchor["hashed_at"], source)
        return expected == anchor.get("record_hash")
