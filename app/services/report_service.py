# app/services/report_service.py
"""
Report Submission Service.

Creates the report row, stores its attributes and involved entities,
and hands the new report to the hash-chain anchor. Only the report
insert itself may fail the submission.
"""

import logging
import random
import string
from typing import Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.models.report_model import InvolvedEntityModel, ReportAttribute, ReportModel
from app.schemas.report_schema import ReportCreate
from app.services.anchor_service import HashChainAnchorService

logger = logging.getLogger(__name__)

REPORT_RECORD_TYPE = "report"
PUBLIC_ID_LENGTH = 8
PUBLIC_ID_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_PREFIX = "TB-"

MAX_PRIORITY = 5
HIGH_PRIORITY_SECTORS = ["health", "education", "security", "disaster", "emergency"]
HIGH_PRIORITY_TYPES = ["embezzlement", "kickback", "bribery", "ghost"]

_rng = random.SystemRandom()


def generate_public_id() -> str:
    """Tracking id shown to the reporter instead of the internal id."""
    return "".join(_rng.choice(PUBLIC_ID_ALPHABET) for _ in range(PUBLIC_ID_LENGTH))


def calculate_priority(data: ReportCreate) -> int:
    """
    Priority 1–5: raised for large amounts, sensitive sectors and
    high-priority corruption types.
    """
    priority = 1

    amount_range = (data.estimated_amount_range or "").lower()
    if "billion" in amount_range or "million" in amount_range:
        priority = min(priority + 2, MAX_PRIORITY)
    elif "thousand" in amount_range:
        priority = min(priority + 1, MAX_PRIORITY)

    content = f"{(data.detailed_description or '').lower()} {(data.summary or '').lower()}"

    if any(sector in content for sector in HIGH_PRIORITY_SECTORS):
        priority = min(priority + 1, MAX_PRIORITY)

    if any(kind in content for kind in HIGH_PRIORITY_TYPES):
        priority = min(priority + 1, MAX_PRIORITY)

    return priority


async def create_report(db: AsyncIOMotorDatabase, data: ReportCreate) -> Tuple[ReportModel, str]:
    """Insert the report row. Errors propagate to the route."""
    report = ReportModel(
        public_id=generate_public_id(),
        status="new",
        summary=data.summary,
        detailed_description=data.detailed_description,
        estimated_amount_range=data.estimated_amount_range,
        source_of_info=data.source_of_info,
        follow_up_allowed=data.follow_up_allowed,
        contact_info=data.contact_info,
        priority_level=calculate_priority(data),
    )
    result = await db.reports.insert_one(report.model_dump())
    logger.info("Created report with ID %s and public ID %s", result.inserted_id, report.public_id)
    return report, str(result.inserted_id)


async def store_report_details(db: AsyncIOMotorDatabase, report_id: str, data: ReportCreate) -> None:
    if data.attributes:
        records = [
            ReportAttribute(report_id=report_id, attribute_key=key, attribute_value=str(value)).model_dump()
            for key, value in data.attributes.items()
        ]
        try:
            await db.report_attributes.insert_many(records)
            logger.info("Stored %d attributes for report %s", len(records), report_id)
        except Exception:
            logger.exception("Error storing attributes for report %s", report_id)

    if data.involved_entities:
        records = [
            InvolvedEntityModel(
                report_id=report_id,
                name=entity.name or "Unknown",
                type=entity.type or "Unknown",
                role=entity.role or "",
                additional_info=entity.additional_info,
            ).model_dump()
            for entity in data.involved_entities
        ]
        try:
            await db.involved_entities.insert_many(records)
            logger.info("Stored %d involved entities for report %s", len(records), report_id)
        except Exception:
            logger.exception("Error storing involved entities for report %s", report_id)


async def anchor_report(anchor_service: HashChainAnchorService, report_id: str,
                        report: ReportModel) -> Optional[dict]:
    """Fire-and-forget anchor for a newly created report."""
    anchor = await anchor_service.anchor(
        REPORT_RECORD_TYPE,
        report_id,
        {"summary": report.summary, "source": report.source_of_info},
    )
    return anchor.model_dump() if anchor else None
