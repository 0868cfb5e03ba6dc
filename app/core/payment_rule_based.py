# app/core/payment_rule_based.py
from app.db.models.payment_model import PaymentRecord
from app.utils.record_utils import is_round_million, to_amount, to_naive_utc

# ----------------------------------------------------
# RULE-BASED ENGINE FOR PAYMENT PATTERN SCORE
# ----------------------------------------------------
PAYMENT_RULES = {
    "overpayment": {
        "weight": 40,
        "message": "Payment exceeds contract value",
    },
    "large_payment": {
        "weight": 20,
        "message": "Large payment amount",
    },
    "weekend_payment": {
        "weight": 15,
        "message": "Weekend payment",
    },
    "round_number": {
        "weight": 10,
        "message": "Round number payment",
    },
    "high_system_risk": {
        # weight is risk_score / 5, see below
        "weight": None,
        "message": "High system risk score",
    },
}

OVERPAYMENT_RATIO = 1.1          # 10% over contract
LARGE_PAYMENT = 50_000_000       # 50M+
HIGH_RISK_SCORE = 70
RISK_SCORE_DIVISOR = 5


def compute_payment_rule_score(payment: PaymentRecord) -> dict:
    """
    Calculates the rule-based score of one payment against its
    linked contract (contract value 0 when the join is empty).
    """
    amount = to_amount(payment.amount_paid)
    contract_value = to_amount(payment.contract_value)

    triggered = []
    score = 0.0

    # RULE 1: OVERPAYMENT
    if contract_value > 0 and amount > contract_value * OVERPAYMENT_RATIO:
        triggered.append("overpayment")
        score += PAYMENT_RULES["overpayment"]["weight"]

    # RULE 2: LARGE PAYMENT
    if amount > LARGE_PAYMENT:
        triggered.append("large_payment")
        score += PAYMENT_RULES["large_payment"]["weight"]

    # RULE 3: SATURDAY / SUNDAY
    paid_at = to_naive_utc(payment.payment_date)
    if paid_at is not None and paid_at.weekday() >= 5:
        triggered.append("weekend_payment")
        score += PAYMENT_RULES["weekend_payment"]["weight"]

    # RULE 4: EXACT MILLIONS
    if is_round_million(amount):
        triggered.append("round_number")
        score += PAYMENT_RULES["round_number"]["weight"]

    # RULE 5: ALREADY FLAGGED UPSTREAM
    if payment.risk_score and payment.risk_score > HIGH_RISK_SCORE:
        triggered.append("high_system_risk")
        score += payment.risk_score / RISK_SCORE_DIVISOR

    return {
        "total_score": score,
        "triggered_rules": triggered,
        "reasons": [PAYMENT_RULES[r]["message"] for r in triggered],
    }
