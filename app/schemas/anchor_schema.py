# app/schemas/anchor_schema.py
from typing import List, Optional

from pydantic import BaseModel


class ChainError(BaseModel):
    index: int
    record_id: Optional[str] = None
    error: str  # broken_link | genesis_violation | record_hash_mismatch | ...


class ChainVerificationResponse(BaseModel):
    record_type: str
    verified: bool
    chain_length: int
    head_hash: Optional[str] = None
    errors: List[ChainError] = []
