from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class PaymentRecord(BaseModel):
    """
    Payment as stored in the `payments` collection.

    `contracts` is the joined contract ({"contract_value", "vendor_name"})
    resolved through `contract_id`.
    """

    payment_id: Optional[Any] = None
    amount_paid: Optional[float] = None
    contract_id: Optional[Any] = None
    contracts: Optional[Dict[str, Any]] = None
    payment_date: Optional[datetime] = None
    risk_score: Optional[float] = None  # 0–100 score set upstream
    district: Optional[str] = None

    @property
    def contract_value(self) -> Optional[float]:
        if not self.contracts:
            return None
        return self.contracts.get("contract_value")

    @property
    def vendor_name(self) -> Optional[str]:
        if not self.contracts:
            return None
        return self.contracts.get("vendor_name")
