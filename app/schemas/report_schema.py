# app/schemas/report_schema.py

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class InvolvedEntity(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    role: Optional[str] = None
    additional_info: Dict[str, Any] = Field(default_factory=dict, alias="additionalInfo")

    class Config:
        populate_by_name = True


class ReportCreate(BaseModel):
    # summary / source_of_info are checked in the route to return 400
    summary: Optional[str] = None
    source_of_info: Optional[str] = None
    detailed_description: Optional[str] = None
    estimated_amount_range: Optional[str] = None
    follow_up_allowed: bool = False
    contact_info: Optional[Dict[str, Any]] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)
    involved_entities: List[InvolvedEntity] = Field(default_factory=list)


class ReportSubmitResponse(BaseModel):
    success: bool = True
    report_id: str          # public id
    reference_number: str
    priority_level: int
    status: str
    message: str
    next_steps: List[str]
