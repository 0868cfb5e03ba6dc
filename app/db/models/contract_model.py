from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ContractRecord(BaseModel):
    """
    Contract as stored in the `contracts` collection.

    `vendors` holds the joined vendor entity ({"name": ...}) when the
    denormalized `vendor_name` column is empty.
    """

    contract_id: Optional[Any] = None
    contract_value: Optional[float] = None
    vendor_id: Optional[Any] = None
    vendor_name: Optional[str] = None
    vendors: Optional[Dict[str, Any]] = None
    contract_start_date: Optional[datetime] = None
    contract_target_end_date: Optional[datetime] = None
    contract_status: Optional[str] = None
    district: Optional[str] = None

    @property
    def resolved_vendor_name(self) -> Optional[str]:
        if self.vendor_name:
            return self.vendor_name
        if self.vendors:
            return self.vendors.get("name") or None
        return None
