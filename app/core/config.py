from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Procurement Integrity Monitor"

    # MongoDB Config
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "procurement_integrity"

    # Anomaly scan
    SCAN_TIMEOUT_SECONDS: float = 30.0

    # Hash-chain anchoring
    ANCHOR_APPEND_RETRIES: int = 3
    ANCHOR_OUTBOX_POLL_SECONDS: int = 30
    ANCHOR_OUTBOX_BATCH_SIZE: int = 20

    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    class Config:
        env_file = ".env"

settings = Settings()
