# app/utils/record_utils.py
"""
Normalization helpers shared by the procurement detectors.

Source rows come from a loosely typed store: numeric fields may be null
and dates may be naive or timezone-aware.
"""

from datetime import datetime, timezone
from typing import Optional

ROUND_NUMBER_UNIT = 1_000_000


def to_amount(value: Optional[float]) -> float:
    """Null-coalesce a money field to 0."""
    return float(value) if value is not None else 0.0


def is_round_million(amount: float) -> bool:
    """True for positive amounts that are an exact multiple of one million."""
    return amount > 0 and amount % ROUND_NUMBER_UNIT == 0


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Drop tzinfo after converting to UTC so mixed rows can be compared."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
