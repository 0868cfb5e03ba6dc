from typing import Any, Optional

from pydantic import BaseModel


class BudgetRecord(BaseModel):
    """
    Budget line as stored in the `budgets` collection.

    Amounts stay optional here; detectors coalesce them to zero.
    """

    budget_id: Optional[Any] = None
    allocated_amount: Optional[float] = None
    actual_expenditure: Optional[float] = None
    ministry: Optional[str] = None
    programme: Optional[str] = None
    district: Optional[str] = None
    fiscal_year: Optional[Any] = None
