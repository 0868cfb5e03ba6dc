# app/api/v1/routes/report_route.py
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from app.db.mongodb import get_database
from app.schemas.report_schema import ReportCreate, ReportSubmitResponse
from app.services.anchor_service import HashChainAnchorService
from app.services.report_service import (
    REFERENCE_PREFIX,
    anchor_report,
    create_report,
    store_report_details,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=ReportSubmitResponse)
async def submit_report(
    data: ReportCreate,
    background_tasks: BackgroundTasks,
    db=Depends(get_database),
):
    # -----------------------------
    # VALIDATION
    # -----------------------------
    if not data.summary:
        raise HTTPException(status_code=400, detail="Summary is required")

    if not data.source_of_info:
        raise HTTPException(status_code=400, detail="Source of information is required")

    # -----------------------------
    # CREATE REPORT
    # -----------------------------
    try:
        report, report_id = await create_report(db, data)
    except Exception:
        logger.exception("Error creating report")
        raise HTTPException(status_code=500, detail="Failed to create report")

    await store_report_details(db, report_id, data)

    # anchoring never fails the submission
    background_tasks.add_task(anchor_report, HashChainAnchorService(db), report_id, report)

    reference = f"{REFERENCE_PREFIX}{report.public_id}"
    logger.info("Report submission completed successfully: %s", report.public_id)

    return ReportSubmitResponse(
        success=True,
        report_id=report.public_id,
        reference_number=reference,
        priority_level=report.priority_level,
        status=report.status,
        message="Your report has been submitted successfully. Thank you for contributing to transparency!",
        next_steps=[
            "Your report has been assigned a reference number for tracking",
            "It will be reviewed by our audit team within 48-72 hours",
            "High priority reports are fast-tracked for investigation",
            f"You can reference this report using: {reference}",
        ],
    )
