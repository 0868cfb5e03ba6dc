"""
Hybrid Procurement Anomaly Scoring
----------------------------------
Combines, per domain:
1. Rule-based score (fixed weights, see app/core/*_rule_based.py)
2. A deterministic statistical proxy scaled to 0–100 ("ml_score")

combined_score is the plain mean of the two and is fixed at creation.
Severity is driven by the rule score alone, with per-domain thresholds.

Location:
app/hybrid_model/hybrid_scoring.py
"""

import logging
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from app.core.budget_rule_based import compute_budget_rule_score
from app.core.contract_rule_based import build_vendor_index, compute_contract_rule_score
from app.core.payment_rule_based import compute_payment_rule_score
from app.db.models.anomaly_model import AnomalyType, Severity
from app.db.models.budget_model import BudgetRecord
from app.db.models.contract_model import ContractRecord
from app.db.models.payment_model import PaymentRecord
from app.schemas.anomaly_schema import AnomalyCandidate
from app.utils.record_utils import to_amount

logger = logging.getLogger(__name__)


# --------------------------------------------------
# HYBRID PARAMETERS
# --------------------------------------------------
EMIT_THRESHOLD = 15
ML_SCORE_CAP = 100.0

# (high, medium): rule_score strictly above the value
SEVERITY_THRESHOLDS = {
    AnomalyType.BUDGET_VARIANCE: (35, 20),
    AnomalyType.CONTRACT_PATTERN: (40, 25),
    AnomalyType.PAYMENT_PATTERN: (40, 25),
}

UNKNOWN_VENDOR = "Unknown vendor"


# --------------------------------------------------
# SHARED HELPERS
# --------------------------------------------------
def combine_scores(rule_score: float, ml_score: float) -> float:
    return (rule_score + ml_score) / 2


def classify_severity(anomaly_type: AnomalyType, rule_score: float) -> Severity:
    high, medium = SEVERITY_THRESHOLDS[anomaly_type]
    if rule_score > high:
        return Severity.HIGH
    if rule_score > medium:
        return Severity.MEDIUM
    return Severity.LOW


def should_emit(rule_score: float, reasons: List[str]) -> bool:
    # any fired rule emits, even below the threshold
    return rule_score > EMIT_THRESHOLD or len(reasons) > 0


def _build_candidate(anomaly_type: AnomalyType, rules: dict, ml_score: float,
                     description: str, details: dict, **related_id) -> AnomalyCandidate:
    rule_score = rules["total_score"]
    return AnomalyCandidate(
        type=anomaly_type,
        description=description,
        rule_score=rule_score,
        ml_score=ml_score,
        combined_score=combine_scores(rule_score, ml_score),
        severity=classify_severity(anomaly_type, rule_score),
        triggered_rules=rules["triggered_rules"],
        details=details,
        **related_id,
    )


# --------------------------------------------------
# STATISTICAL PROXIES
# --------------------------------------------------
def budget_variance(allocated: float, actual: float) -> float:
    return abs(actual - allocated) / allocated


def budget_ml_score(variance: float) -> float:
    return min(variance * 50, ML_SCORE_CAP)


def contract_ml_score(contract_value: float) -> float:
    return min((contract_value / 10_000_000) * 10, ML_SCORE_CAP)


def payment_ml_score(amount: float) -> float:
    return min((amount / 5_000_000) * 10, ML_SCORE_CAP)


# --------------------------------------------------
# PER-RECORD DECISIONS
# --------------------------------------------------
def hybrid_budget_decision(budget: BudgetRecord) -> Optional[AnomalyCandidate]:
    allocated = to_amount(budget.allocated_amount)
    actual = to_amount(budget.actual_expenditure)

    if allocated == 0:
        return None

    variance = budget_variance(allocated, actual)
    rules = compute_budget_rule_score(budget)

    if not should_emit(rules["total_score"], rules["reasons"]):
        return None

    return _build_candidate(
        AnomalyType.BUDGET_VARIANCE,
        rules,
        budget_ml_score(variance),
        description=(
            f"Budget anomaly in {budget.ministry} - {budget.programme}: "
            f"{', '.join(rules['reasons'])}"
        ),
        details={
            "allocated_amount": allocated,
            "actual_expenditure": actual,
            "variance_percentage": f"{variance * 100:.2f}",
            "ministry": budget.ministry,
            "programme": budget.programme,
            "district": budget.district,
        },
        budget_id=budget.budget_id,
    )


def hybrid_contract_decision(contract: ContractRecord,
                             vendor_index: Dict[str, int]) -> Optional[AnomalyCandidate]:
    value = to_amount(contract.contract_value)
    vendor = contract.resolved_vendor_name
    rules = compute_contract_rule_score(contract, vendor_index)

    if not should_emit(rules["total_score"], rules["reasons"]):
        return None

    return _build_candidate(
        AnomalyType.CONTRACT_PATTERN,
        rules,
        contract_ml_score(value),
        description=f"Contract anomaly: {vendor or UNKNOWN_VENDOR} - {', '.join(rules['reasons'])}",
        details={
            "vendor_name": vendor,
            "contract_value": value,
            "vendor_contract_count": rules["vendor_contract_count"],
            "district": contract.district,
            "status": contract.contract_status,
        },
        contract_id=contract.contract_id,
    )


def hybrid_payment_decision(payment: PaymentRecord) -> Optional[AnomalyCandidate]:
    amount = to_amount(payment.amount_paid)
    rules = compute_payment_rule_score(payment)

    if not should_emit(rules["total_score"], rules["reasons"]):
        return None

    return _build_candidate(
        AnomalyType.PAYMENT_PATTERN,
        rules,
        payment_ml_score(amount),
        description=(
            f"Payment anomaly: {payment.vendor_name or UNKNOWN_VENDOR} - "
            f"{', '.join(rules['reasons'])}"
        ),
        details={
            "payment_amount": amount,
            "contract_value": to_amount(payment.contract_value),
            "payment_date": payment.payment_date.isoformat() if payment.payment_date else None,
            "vendor_name": payment.vendor_name,
            "district": payment.district,
        },
        payment_id=payment.payment_id,
    )


# --------------------------------------------------
# COLLECTION SCANS
# --------------------------------------------------
def _parse_records(model, docs: Iterable[dict]) -> list:
    """Validate raw rows, skipping (and logging) the malformed ones."""
    records = []
    for doc in docs:
        try:
            records.append(model.model_validate(doc))
        except ValidationError as e:
            logger.warning("Skipping malformed %s row %s: %s",
                           model.__name__, doc.get("_id"), e.error_count())
    return records


def detect_budget_anomalies(budget_docs: Iterable[dict]) -> List[AnomalyCandidate]:
    budgets = _parse_records(BudgetRecord, budget_docs)
    candidates = (hybrid_budget_decision(b) for b in budgets)
    return [c for c in candidates if c is not None]


def detect_contract_anomalies(contract_docs: Iterable[dict]) -> List[AnomalyCandidate]:
    contracts = _parse_records(ContractRecord, contract_docs)
    vendor_index = build_vendor_index(contracts)
    candidates = (hybrid_contract_decision(c, vendor_index) for c in contracts)
    return [c for c in candidates if c is not None]


def detect_payment_anomalies(payment_docs: Iterable[dict]) -> List[AnomalyCandidate]:
    payments = _parse_records(PaymentRecord, payment_docs)
    candidates = (hybrid_payment_decision(p) for p in payments)
    return [c for c in candidates if c is not None]
