# app/db/models/report_model.py
"""
Report Model for whistleblower submissions.

Only the fields needed to triage and anchor a report live here; evidence
files and chat transcripts are handled by other services.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ReportModel(BaseModel):
    """Report row for MongoDB storage (`reports` collection)"""

    public_id: str
    status: str = "new"
    summary: str
    detailed_description: Optional[str] = None
    estimated_amount_range: Optional[str] = None
    source_of_info: str
    follow_up_allowed: bool = False
    contact_info: Optional[Dict[str, Any]] = None
    priority_level: int = Field(ge=1, le=5, default=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ReportAttribute(BaseModel):
    report_id: str
    attribute_key: str
    attribute_value: str


class InvolvedEntityModel(BaseModel):
    report_id: str
    name: str = "Unknown"
    type: str = "Unknown"
    role: str = ""
    additional_info: Dict[str, Any] = Field(default_factory=dict)
