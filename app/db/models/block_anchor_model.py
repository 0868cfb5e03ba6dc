# app/db/models/block_anchor_model.py
"""
HashAnchor Model for the append-only `block_anchors` collection.

Each record type owns an independent singly-linked chain:
anchor[i].prev_hash == anchor[i-1].current_hash, and the first anchor
of a type points at GENESIS_HASH.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

GENESIS_HASH = "0" * 64
HASH_PATTERN = r"^[0-9a-f]{64}$"


class HashAnchor(BaseModel):
    """Anchor row for MongoDB storage. Never updated once written."""

    record_type: str
    record_id: str
    prev_hash: str = Field(pattern=HASH_PATTERN)
    record_hash: str = Field(pattern=HASH_PATTERN)
    current_hash: str = Field(pattern=HASH_PATTERN)
    block_number: Optional[int] = None
    hashed_at: str  # timestamp that went into the canonical snapshot
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "record_type": "report",
                "record_id": "665f1c2ab3e4d5f6a7b8c9d0",
                "prev_hash": GENESIS_HASH,
                "record_hash": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
                "current_hash": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
                "block_number": 0,
                "hashed_at": "2024-01-01T12:00:00.000Z",
                "created_at": "2024-01-01T12:00:00Z",
            }
        }
