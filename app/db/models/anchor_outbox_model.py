from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PendingAnchor(BaseModel):
    """
    Anchor write that failed on the request path and waits in
    `anchor_outbox` for the retry worker.
    """

    record_type: str
    record_id: str
    summary: Optional[str] = None
    source: Optional[str] = None
    hashed_at: str
    attempts: int = 0
    last_error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
