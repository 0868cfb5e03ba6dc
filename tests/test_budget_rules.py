"""
Budget variance detector: rule weights, ML proxy and severity.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.budget_rule_based import compute_budget_rule_score
from app.db.models.anomaly_model import AnomalyType, Severity
from app.db.models.budget_model import BudgetRecord
from app.hybrid_model.hybrid_scoring import (
    classify_severity,
    detect_budget_anomalies,
    hybrid_budget_decision,
)


def budget(**kwargs) -> BudgetRecord:
    base = {"budget_id": "b-1", "ministry": "Health", "programme": "Vaccines", "district": "Kampala"}
    base.update(kwargs)
    return BudgetRecord(**base)


def test_zero_expenditure_on_large_allocation():
    res = hybrid_budget_decision(budget(allocated_amount=20_000_000, actual_expenditure=0))

    # nothing spent is also less than half spent
    assert res.triggered_rules == ["under_expenditure", "zero_expenditure"]
    assert res.rule_score == 60
    assert res.ml_score == 50
    assert res.combined_score == 55
    assert res.severity == Severity.HIGH
    assert res.description == (
        "Budget anomaly in Health - Vaccines: "
        "Significant under-expenditure, No expenditure despite high allocation"
    )
    assert res.details["variance_percentage"] == "100.00"


def test_over_expenditure_with_round_number():
    res = compute_budget_rule_score(budget(allocated_amount=1_500_000, actual_expenditure=2_000_000))

    assert res["triggered_rules"] == ["over_expenditure", "round_number"]
    assert res["total_score"] == 45


def test_spending_within_band_is_not_emitted():
    assert hybrid_budget_decision(budget(allocated_amount=1_000_000, actual_expenditure=900_500)) is None


def test_zero_allocation_is_skipped():
    assert hybrid_budget_decision(budget(allocated_amount=0, actual_expenditure=5_000_000)) is None


def test_ml_score_is_capped():
    res = hybrid_budget_decision(budget(allocated_amount=100_000, actual_expenditure=1_000_500))
    assert res.ml_score == 100


def test_severity_thresholds_are_strict():
    assert classify_severity(AnomalyType.BUDGET_VARIANCE, 35) == Severity.MEDIUM
    assert classify_severity(AnomalyType.BUDGET_VARIANCE, 36) == Severity.HIGH
    assert classify_severity(AnomalyType.BUDGET_VARIANCE, 20) == Severity.LOW
    assert classify_severity(AnomalyType.BUDGET_VARIANCE, 21) == Severity.MEDIUM


def test_malformed_rows_are_skipped():
    docs = [
        {"budget_id": "bad", "allocated_amount": "lots", "actual_expenditure": 0},
        {"budget_id": "b-2", "allocated_amount": 20_000_000, "actual_expenditure": 0,
         "ministry": "Works", "programme": "Roads"},
    ]
    res = detect_budget_anomalies(docs)

    assert [a.budget_id for a in res] == ["b-2"]
    assert res[0].type == AnomalyType.BUDGET_VARIANCE
