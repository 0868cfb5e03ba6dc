# app/services/anomaly_scan_service.py
"""
Anomaly Scan Service.

Fans out the three domain detectors concurrently, merges their
candidates, persists them to the `anomalies` collection and returns the
scan summary. A detector whose source query fails contributes nothing;
a failed insert is logged and never turns into an error response.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List

from pymongo.errors import BulkWriteError

from app.core.config import settings
from app.core.dsa.mongo_dsa import MongoDSA
from app.db.models.anomaly_model import AnomalyType, Severity
from app.hybrid_model.hybrid_scoring import (
    detect_budget_anomalies,
    detect_contract_anomalies,
    detect_payment_anomalies,
)
from app.schemas.anomaly_schema import (
    AnomaliesBySeverity,
    AnomaliesByType,
    AnomalyCandidate,
    HighPriorityAnomaly,
    ScanSummary,
)

logger = logging.getLogger(__name__)


# --------------------------------------------------
# DETECTOR TASKS (source read + score)
# --------------------------------------------------
async def scan_budgets(dsa: MongoDSA) -> List[AnomalyCandidate]:
    try:
        budgets = await dsa.get_budgets_with_amounts()
        return detect_budget_anomalies(budgets)
    except Exception:
        logger.exception("Error detecting budget anomalies")
        return []


async def scan_contracts(dsa: MongoDSA) -> List[AnomalyCandidate]:
    try:
        contracts = await dsa.get_contracts()
        return detect_contract_anomalies(contracts)
    except Exception:
        logger.exception("Error detecting contract anomalies")
        return []


async def scan_payments(dsa: MongoDSA) -> List[AnomalyCandidate]:
    try:
        payments = await dsa.get_payments_with_contracts()
        return detect_payment_anomalies(payments)
    except Exception:
        logger.exception("Error detecting payment anomalies")
        return []


# --------------------------------------------------
# PERSISTENCE
# --------------------------------------------------
async def store_anomalies(dsa: MongoDSA, anomalies: List[AnomalyCandidate]) -> int:
    """
    Bulk insert the candidates. Returns how many rows were written;
    failures are logged and not retried.
    """
    if not anomalies:
        return 0

    docs = [a.to_record().model_dump() for a in anomalies]
    try:
        result = await dsa.insert_anomalies(docs)
    except BulkWriteError as e:
        inserted = e.details.get("nInserted", 0)
        logger.warning("Partial anomaly insert: %d of %d stored", inserted, len(docs))
        return inserted
    except Exception:
        logger.warning("Error storing anomalies", exc_info=True)
        return 0

    logger.info("Stored %d anomalies in database", len(result.inserted_ids))
    return len(result.inserted_ids)


# --------------------------------------------------
# SUMMARY
# --------------------------------------------------
def build_scan_summary(anomalies: List[AnomalyCandidate], scan_timestamp: str) -> ScanSummary:
    by_type = {t.value: 0 for t in AnomalyType}
    by_severity = {s.value: 0 for s in Severity}
    for a in anomalies:
        by_type[AnomalyType(a.type).value] += 1
        by_severity[Severity(a.severity).value] += 1

    return ScanSummary(
        success=True,
        scan_timestamp=scan_timestamp,
        total_anomalies=len(anomalies),
        anomalies_by_type=AnomaliesByType(**by_type),
        anomalies_by_severity=AnomaliesBySeverity(**by_severity),
        high_priority_anomalies=[
            HighPriorityAnomaly(type=a.type, description=a.description, score=a.combined_score)
            for a in anomalies
            if a.severity == Severity.HIGH
        ],
    )


# --------------------------------------------------
# ORCHESTRATION
# --------------------------------------------------
async def _scan(db) -> ScanSummary:
    logger.info("Starting anomaly detection scan...")
    dsa = MongoDSA(db)

    budget_anomalies, contract_anomalies, payment_anomalies = await asyncio.gather(
        scan_budgets(dsa),
        scan_contracts(dsa),
        scan_payments(dsa),
    )
    all_anomalies = budget_anomalies + contract_anomalies + payment_anomalies

    logger.info(
        "Detected %d total anomalies (budget=%d, contract=%d, payment=%d)",
        len(all_anomalies), len(budget_anomalies), len(contract_anomalies), len(payment_anomalies),
    )

    await store_anomalies(dsa, all_anomalies)

    scan_timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return build_scan_summary(all_anomalies, scan_timestamp)


async def run_anomaly_scan(db, timeout: float | None = None) -> ScanSummary:
    """
    Full scan bounded by SCAN_TIMEOUT_SECONDS. asyncio.TimeoutError
    propagates to the caller; nothing written before the timeout is undone.
    """
    timeout = settings.SCAN_TIMEOUT_SECONDS if timeout is None else timeout
    return await asyncio.wait_for(_scan(db), timeout=timeout)
