# app/core/contract_rule_based.py
from typing import Dict, Iterable

from app.db.models.contract_model import ContractRecord
from app.utils.record_utils import is_round_million, to_amount, to_naive_utc

# ----------------------------------------------------
# RULE-BASED ENGINE FOR CONTRACT PATTERN SCORE
# ----------------------------------------------------
CONTRACT_RULES = {
    "high_value": {
        "weight": 25,
        "message": "High-value contract",
    },
    "vendor_concentration": {
        "weight": 20,
        "message": "Vendor concentration risk",
    },
    "short_duration": {
        "weight": 30,
        "message": "Unusually short contract duration",
    },
    "long_duration": {
        "weight": 15,
        "message": "Unusually long contract duration",
    },
    "round_number": {
        "weight": 10,
        "message": "Suspicious round number value",
    },
}

HIGH_VALUE_CONTRACT = 100_000_000   # 100M+
VENDOR_CONTRACT_LIMIT = 5
SHORT_DURATION_DAYS = 7
LONG_DURATION_DAYS = 1825           # 5+ years


def build_vendor_index(contracts: Iterable[ContractRecord]) -> Dict[str, int]:
    """
    Count contracts per vendor name over the whole contract set.
    Contracts without a resolvable vendor are not counted.
    """
    index: Dict[str, int] = {}
    for contract in contracts:
        vendor = contract.resolved_vendor_name
        if not vendor:
            continue
        index[vendor] = index.get(vendor, 0) + 1
    return index


def contract_duration_days(contract: ContractRecord) -> float | None:
    start = to_naive_utc(contract.contract_start_date)
    end = to_naive_utc(contract.contract_target_end_date)
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / 86400


def compute_contract_rule_score(contract: ContractRecord, vendor_index: Dict[str, int]) -> dict:
    """
    Calculates the rule-based score of one contract.

    `vendor_index` is the precomputed vendor -> contract count mapping
    from build_vendor_index().
    """
    value = to_amount(contract.contract_value)
    vendor = contract.resolved_vendor_name
    vendor_count = vendor_index.get(vendor, 0) if vendor else 0

    triggered = []

    # RULE 1: HIGH VALUE
    if value > HIGH_VALUE_CONTRACT:
        triggered.append("high_value")

    # RULE 2: SAME VENDOR WINNING MANY CONTRACTS
    if vendor_count > VENDOR_CONTRACT_LIMIT:
        triggered.append("vendor_concentration")

    # RULE 3: DURATION (short wins over long)
    duration = contract_duration_days(contract)
    if duration is not None:
        if duration < SHORT_DURATION_DAYS:
            triggered.append("short_duration")
        elif duration > LONG_DURATION_DAYS:
            triggered.append("long_duration")

    # RULE 4: EXACT MILLIONS
    if is_round_million(value):
        triggered.append("round_number")

    return {
        "total_score": float(sum(CONTRACT_RULES[r]["weight"] for r in triggered)),
        "triggered_rules": triggered,
        "reasons": [CONTRACT_RULES[r]["message"] for r in triggered],
        "vendor_contract_count": vendor_count,
        "duration_days": duration,
    }
