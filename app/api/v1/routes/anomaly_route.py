# app/api/v1/routes/anomaly_route.py
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.dsa.mongo_dsa import MongoDSA
from app.db.models.anomaly_model import AnomalyType, Severity
from app.db.mongodb import get_database
from app.schemas.anomaly_schema import AnomalyListResponse, ScanErrorResponse, ScanSummary
from app.services.anomaly_scan_service import run_anomaly_scan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/anomalies", tags=["Anomalies"])


# --------------------------------------------------
# HELPERS
# --------------------------------------------------
def serialize_mongo(doc: dict) -> dict:
    if "_id" in doc:
        doc["id"] = str(doc["_id"])
        del doc["_id"]
    return doc


def scan_error(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=ScanErrorResponse(error="Anomaly detection failed", message=message).model_dump(),
    )


# --------------------------------------------------
# RUN ANOMALY SCAN
# --------------------------------------------------
@router.post(
    "/scan",
    response_model=ScanSummary,
    responses={500: {"model": ScanErrorResponse}},
)
async def scan_anomalies(db=Depends(get_database)):
    try:
        return await run_anomaly_scan(db)
    except asyncio.TimeoutError:
        logger.error("Anomaly scan timed out after %ss", settings.SCAN_TIMEOUT_SECONDS)
        return scan_error(f"Scan timed out after {settings.SCAN_TIMEOUT_SECONDS} seconds")
    except Exception as e:
        logger.exception("Anomaly detection error")
        return scan_error(str(e) or "Unexpected error during anomaly scan")


# --------------------------------------------------
# LIST PERSISTED ANOMALIES
# --------------------------------------------------
@router.get("", response_model=AnomalyListResponse)
async def list_anomalies(
    anomaly_type: Optional[AnomalyType] = None,
    severity: Optional[Severity] = None,
    limit: int = Query(100, ge=1, le=1000),
    db=Depends(get_database),
):
    anomalies = await MongoDSA(db).get_anomalies(
        anomaly_type=anomaly_type.value if anomaly_type else None,
        severity=severity.value if severity else None,
        limit=limit,
    )
    serialized = [serialize_mongo(a) for a in anomalies]
    return {
        "anomalies": serialized,
        "count": len(serialized),
    }
