"""
Contract pattern detector: value, vendor concentration and duration rules.
"""
import sys
import os
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.contract_rule_based import (
    build_vendor_index,
    compute_contract_rule_score,
    contract_duration_days,
)
from app.db.models.anomaly_model import AnomalyType, Severity
from app.db.models.contract_model import ContractRecord
from app.hybrid_model.hybrid_scoring import (
    classify_severity,
    detect_contract_anomalies,
    hybrid_contract_decision,
)


def test_high_value_contract_is_low_severity_at_boundary():
    contract = ContractRecord(contract_id="c-1", contract_value=150_500_000, vendor_name="Acme")
    res = hybrid_contract_decision(contract, {"Acme": 1})

    assert res.triggered_rules == ["high_value"]
    assert res.rule_score == 25
    # 25 is not strictly above the medium threshold
    assert res.severity == Severity.LOW
    assert res.ml_score == 100
    assert res.description == "Contract anomaly: Acme - High-value contract"


def test_round_value_adds_weight():
    contract = ContractRecord(contract_value=150_000_000, vendor_name="Acme")
    res = compute_contract_rule_score(contract, {"Acme": 1})

    assert res["triggered_rules"] == ["high_value", "round_number"]
    assert res["total_score"] == 35


def test_vendor_concentration_uses_whole_contract_set():
    docs = [
        {"contract_id": f"c-{i}", "contract_value": 1_000_500, "vendor_name": "Acme"}
        for i in range(6)
    ]
    docs.append({"contract_id": "c-x", "contract_value": 1_000_500, "vendor_name": "Other"})

    res = detect_contract_anomalies(docs)

    assert len(res) == 6
    assert all(a.triggered_rules == ["vendor_concentration"] for a in res)
    assert res[0].details["vendor_contract_count"] == 6


def test_vendor_index_resolves_joined_vendor_name():
    contracts = [
        ContractRecord(vendor_name="Acme"),
        ContractRecord(vendors={"name": "Acme"}),
        ContractRecord(),
    ]
    assert build_vendor_index(contracts) == {"Acme": 2}


def test_short_duration_wins_over_long():
    start = datetime(2024, 1, 1)
    contract = ContractRecord(
        contract_value=10_500,
        contract_start_date=start,
        contract_target_end_date=start + timedelta(days=3),
    )
    res = compute_contract_rule_score(contract, {})

    assert res["triggered_rules"] == ["short_duration"]
    assert res["total_score"] == 30


def test_long_duration():
    contract = ContractRecord(
        contract_value=10_500,
        contract_start_date=datetime(2020, 1, 1),
        contract_target_end_date=datetime(2026, 1, 1),
    )
    res = compute_contract_rule_score(contract, {})
    assert res["triggered_rules"] == ["long_duration"]


def test_duration_handles_mixed_timezones():
    contract = ContractRecord(
        contract_start_date=datetime(2024, 1, 1),
        contract_target_end_date=datetime(2024, 1, 11, tzinfo=timezone.utc),
    )
    assert contract_duration_days(contract) == 10


def test_unknown_vendor_description():
    contract = ContractRecord(contract_value=200_000_500)
    res = hybrid_contract_decision(contract, {})
    assert res.description.startswith("Contract anomaly: Unknown vendor - ")


def test_clean_contract_is_not_emitted():
    contract = ContractRecord(contract_value=2_500_000, vendor_name="Acme")
    assert hybrid_contract_decision(contract, {"Acme": 1}) is None


def test_contract_severity_thresholds():
    assert classify_severity(AnomalyType.CONTRACT_PATTERN, 25) == Severity.LOW
    assert classify_severity(AnomalyType.CONTRACT_PATTERN, 26) == Severity.MEDIUM
    assert classify_severity(AnomalyType.CONTRACT_PATTERN, 40) == Severity.MEDIUM
    assert classify_severity(AnomalyType.CONTRACT_PATTERN, 41) == Severity.HIGH
