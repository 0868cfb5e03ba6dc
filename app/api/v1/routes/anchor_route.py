# app/api/v1/routes/anchor_route.py
from fastapi import APIRouter, Depends

from app.db.mongodb import get_database
from app.schemas.anchor_schema import ChainVerificationResponse
from app.services.anchor_service import HashChainAnchorService

router = APIRouter(prefix="/anchors", tags=["Anchors"])


# Read-only: anchors are only ever created by the services that own the records
@router.get("/{record_type}/verify", response_model=ChainVerificationResponse)
async def verify_anchor_chain(record_type: str, db=Depends(get_database)):
    return await HashChainAnchorService(db).verify_chain(record_type)
