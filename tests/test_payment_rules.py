"""
Payment pattern detector: overpayment, size, weekend and upstream risk.
"""
import sys
import os
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.payment_rule_based import compute_payment_rule_score
from app.db.models.anomaly_model import AnomalyType, Severity
from app.db.models.payment_model import PaymentRecord
from app.hybrid_model.hybrid_scoring import (
    classify_severity,
    detect_payment_anomalies,
    hybrid_payment_decision,
)

SATURDAY = datetime(2024, 1, 6, 10, 0, 0)
WEDNESDAY = datetime(2024, 1, 3, 10, 0, 0)


def test_overpaid_large_weekend_payment():
    payment = PaymentRecord(
        payment_id="p-1",
        amount_paid=60_500_000,
        payment_date=SATURDAY,
        contracts={"contract_value": 50_000_000, "vendor_name": "Acme"},
    )
    res = hybrid_payment_decision(payment)

    assert res.triggered_rules == ["overpayment", "large_payment", "weekend_payment"]
    assert res.rule_score == 75
    assert res.severity == Severity.HIGH
    assert res.ml_score == 100
    assert res.description == (
        "Payment anomaly: Acme - Payment exceeds contract value, Large payment amount, Weekend payment"
    )


def test_round_million_payment():
    payment = PaymentRecord(amount_paid=3_000_000, payment_date=WEDNESDAY)
    res = compute_payment_rule_score(payment)

    assert res["triggered_rules"] == ["round_number"]
    assert res["total_score"] == 10


def test_missing_contract_never_counts_as_overpayment():
    payment = PaymentRecord(amount_paid=1_500, payment_date=WEDNESDAY)
    assert hybrid_payment_decision(payment) is None


def test_high_system_risk_adds_fractional_weight():
    payment = PaymentRecord(amount_paid=1_500, payment_date=WEDNESDAY, risk_score=85)
    res = hybrid_payment_decision(payment)

    assert res.triggered_rules == ["high_system_risk"]
    assert res.rule_score == 17
    assert res.severity == Severity.LOW
    assert res.description.startswith("Payment anomaly: Unknown vendor - ")


def test_risk_score_at_limit_does_not_fire():
    payment = PaymentRecord(amount_paid=1_500, payment_date=WEDNESDAY, risk_score=70)
    assert compute_payment_rule_score(payment)["triggered_rules"] == []


def test_severity_thresholds():
    assert classify_severity(AnomalyType.PAYMENT_PATTERN, 40) == Severity.MEDIUM
    assert classify_severity(AnomalyType.PAYMENT_PATTERN, 41) == Severity.HIGH
    assert classify_severity(AnomalyType.PAYMENT_PATTERN, 25) == Severity.LOW


def test_detect_from_joined_rows():
    docs = [
        {"payment_id": "p-1", "amount_paid": 1_500, "payment_date": SATURDAY,
         "contracts": {"contract_value": 1_000, "vendor_name": "Acme"}},
        {"payment_id": "p-2", "amount_paid": 900, "payment_date": WEDNESDAY,
         "contracts": {"contract_value": 1_000, "vendor_name": "Acme"}},
    ]
    res = detect_payment_anomalies(docs)

    assert [a.payment_id for a in res] == ["p-1"]
    assert res[0].rule_score == 55
    assert res[0].details["contract_value"] == 1_000
    assert res[0].details["payment_date"] == SATURDAY.isoformat()


def test_weekend_is_judged_in_utc():
    # Friday 22:00 at UTC-5 is Saturday 03:00 UTC
    res = detect_payment_anomalies([
        {"payment_id": "p-1", "amount_paid": 1_500, "payment_date": "2024-01-05T22:00:00-05:00"},
    ])
    assert [a.triggered_rules for a in res] == [["weekend_payment"]]

    # Sunday 23:00 at UTC-2 is Monday 01:00 UTC
    payment = PaymentRecord(amount_paid=1_500, payment_date="2024-01-07T23:00:00-02:00")
    assert compute_payment_rule_score(payment)["triggered_rules"] == []
