# app/core/budget_rule_based.py
from app.db.models.budget_model import BudgetRecord
from app.utils.record_utils import is_round_million, to_amount

# ----------------------------------------------------
# RULE-BASED ENGINE FOR BUDGET VARIANCE SCORE
# ----------------------------------------------------
BUDGET_RULES = {
    "over_expenditure": {
        "weight": 30,
        "message": "Over-expenditure detected",
    },
    "under_expenditure": {
        "weight": 20,
        "message": "Significant under-expenditure",
    },
    "round_number": {
        "weight": 15,
        "message": "Suspicious round number spending",
    },
    "zero_expenditure": {
        "weight": 40,
        "message": "No expenditure despite high allocation",
    },
}

OVER_EXPENDITURE_RATIO = 1.2      # 20% over budget
UNDER_EXPENDITURE_RATIO = 0.5     # less than half spent
HIGH_ALLOCATION = 10_000_000      # 10M+ allocated


def compute_budget_rule_score(budget: BudgetRecord) -> dict:
    """
    Calculates the rule-based score of a single budget line.
    Rules are independent; several may fire on the same line.

    Returns:
        total_score: sum of triggered weights
        triggered_rules: rule keys in evaluation order
        reasons: human readable messages for the triggered rules
    """
    allocated = to_amount(budget.allocated_amount)
    actual = to_amount(budget.actual_expenditure)

    triggered = []

    # RULE 1: OVER-EXPENDITURE
    if actual > allocated * OVER_EXPENDITURE_RATIO:
        triggered.append("over_expenditure")

    # RULE 2: UNDER-EXPENDITURE
    if actual < allocated * UNDER_EXPENDITURE_RATIO:
        triggered.append("under_expenditure")

    # RULE 3: EXACT MILLIONS
    if is_round_million(actual):
        triggered.append("round_number")

    # RULE 4: NOTHING SPENT ON A LARGE ALLOCATION
    if actual == 0 and allocated > HIGH_ALLOCATION:
        triggered.append("zero_expenditure")

    return {
        "total_score": float(sum(BUDGET_RULES[r]["weight"] for r in triggered)),
        "triggered_rules": triggered,
        "reasons": [BUDGET_RULES[r]["message"] for r in triggered],
    }
