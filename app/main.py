# main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import asyncio
import logging

from app.core.config import settings
from app.db.mongodb import connect_to_mongo, close_mongo_connection, get_client

from app.api.v1.routes.anomaly_route import router as anomaly_router
from app.api.v1.routes.report_route import router as report_router
from app.api.v1.routes.anchor_route import router as anchor_router

# DSA (Mongo) + anchor outbox worker
from app.core.dsa.mongo_dsa import MongoDSA
from app.services.anchor_worker import retry_pending_anchors_loop


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("app")


# -----------------------------
# FASTAPI APP
# -----------------------------
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Anomaly scoring for budgets, contracts and payments, with hash-chained report anchors"
)

# -----------------------------
# CORS MIDDLEWARE
# -----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# ROUTERS
# -----------------------------
app.include_router(anomaly_router, prefix="/api/v1")
app.include_router(report_router, prefix="/api/v1")
app.include_router(anchor_router, prefix="/api/v1")


# -----------------------------
# STARTUP EVENT
# -----------------------------
@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Starting %s...", settings.PROJECT_NAME)
    await connect_to_mongo()

    client = get_client()
    db = client[settings.MONGO_DB_NAME]

    mongo_dsa = MongoDSA(db)
    await mongo_dsa.ensure_indexes()
    logger.info("🔧 Indexes created")

    # Retry anchors that failed on the request path
    app.state.anchor_worker = asyncio.create_task(retry_pending_anchors_loop(db))


# -----------------------------
# SHUTDOWN EVENT
# -----------------------------
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 Shutting down API...")
    worker = getattr(app.state, "anchor_worker", None)
    if worker is not None:
        worker.cancel()
    await close_mongo_connection()


# -----------------------------
# ROOT ENDPOINT
# -----------------------------
@app.get("/", tags=["Health"])
def root():
    return {
        "message": "Procurement Integrity Monitor Running",
        "version": "1.0.0",
        "docs": "/docs"
    }
