# app/db/models/anomaly_model.py
"""
Anomaly Model for procurement records flagged by a detector run.

Rows are written once per scan and only touched afterwards by the
audit workflow (investigated flag, notes).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AnomalyType(str, Enum):
    BUDGET_VARIANCE = "budget_variance"
    CONTRACT_PATTERN = "contract_pattern"
    PAYMENT_PATTERN = "payment_pattern"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnomalyRecord(BaseModel):
    """Anomaly row for MongoDB storage (`anomalies` collection)"""

    anomaly_type: AnomalyType

    # Exactly one of these points back at the source record
    budget_id: Optional[Any] = None
    contract_id: Optional[Any] = None
    payment_id: Optional[Any] = None

    description: str
    severity: Severity
    rule_score: float = Field(ge=0)
    ml_score: float
    combined_score: float

    triggered_rules: List[str] = Field(default_factory=list)
    details: Dict[str, Any] = Field(default_factory=dict)

    investigated: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        use_enum_values = True
