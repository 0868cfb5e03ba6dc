# app/schemas/anomaly_schema.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.db.models.anomaly_model import AnomalyRecord, AnomalyType, Severity


class AnomalyCandidate(BaseModel):
    """Detector output before it is persisted as an AnomalyRecord"""
    type: AnomalyType
    budget_id: Optional[Any] = None
    contract_id: Optional[Any] = None
    payment_id: Optional[Any] = None
    description: str
    rule_score: float
    ml_score: float
    combined_score: float
    severity: Severity
    triggered_rules: List[str] = Field(default_factory=list)
    details: Dict[str, Any] = Field(default_factory=dict)

    def to_record(self) -> AnomalyRecord:
        return AnomalyRecord(
            anomaly_type=self.type,
            budget_id=self.budget_id,
            contract_id=self.contract_id,
            payment_id=self.payment_id,
            description=self.description,
            severity=self.severity,
            rule_score=self.rule_score,
            ml_score=self.ml_score,
            combined_score=self.combined_score,
            triggered_rules=self.triggered_rules,
            details=self.details,
            investigated=False,
        )


class HighPriorityAnomaly(BaseModel):
    type: AnomalyType
    description: str
    score: float  # combined score


class AnomaliesByType(BaseModel):
    budget_variance: int = 0
    contract_pattern: int = 0
    payment_pattern: int = 0


class AnomaliesBySeverity(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class ScanSummary(BaseModel):
    """Response of a full anomaly scan"""
    success: bool = True
    scan_timestamp: str
    total_anomalies: int
    anomalies_by_type: AnomaliesByType
    anomalies_by_severity: AnomaliesBySeverity
    high_priority_anomalies: List[HighPriorityAnomaly] = Field(default_factory=list)


class ScanErrorResponse(BaseModel):
    error: str
    message: str


class AnomalyListItem(BaseModel):
    id: str
    anomaly_type: AnomalyType
    budget_id: Optional[Any] = None
    contract_id: Optional[Any] = None
    payment_id: Optional[Any] = None
    description: str
    severity: Severity
    rule_score: float
    ml_score: float
    combined_score: float
    investigated: bool = False
    created_at: Optional[datetime] = None


class AnomalyListResponse(BaseModel):
    anomalies: List[AnomalyListItem]
    count: int
