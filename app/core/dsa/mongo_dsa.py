# app/core/dsa/mongo_dsa.py
from typing import Iterable, List, Optional

from pymongo import ASCENDING, DESCENDING

CHAIN_ORDER_DESC = [("created_at", DESCENDING), ("block_number", DESCENDING)]
CHAIN_ORDER_ASC = [("created_at", ASCENDING), ("block_number", ASCENDING)]


class MongoDSA:
    def __init__(self, db):
        """
        db is Motor database object (async)
        e.g. db = await get_database()
        """
        self.db = db

    # ----- record source -----
    async def get_budgets_with_amounts(self) -> List[dict]:
        cursor = self.db.budgets.find({
            "allocated_amount": {"$ne": None},
            "actual_expenditure": {"$ne": None},
        })
        return await cursor.to_list(length=None)

    async def get_contracts(self) -> List[dict]:
        contracts = await self.db.contracts.find({}).to_list(length=None)

        # join vendor names for contracts that only carry vendor_id
        missing = {
            c["vendor_id"] for c in contracts
            if not c.get("vendor_name") and not c.get("vendors") and c.get("vendor_id") is not None
        }
        if missing:
            vendors = await self.db.vendors.find(
                {"vendor_id": {"$in": list(missing)}}
            ).to_list(length=None)
            names = {v["vendor_id"]: {"name": v.get("name")} for v in vendors}
            for c in contracts:
                if c.get("vendor_id") in names and not c.get("vendors"):
                    c["vendors"] = names[c["vendor_id"]]
        return contracts

    async def get_payments_with_contracts(self) -> List[dict]:
        payments = await self.db.payments.find({}).to_list(length=None)

        contract_ids = {p["contract_id"] for p in payments if p.get("contract_id") is not None}
        if contract_ids:
            contracts = await self.db.contracts.find(
                {"contract_id": {"$in": list(contract_ids)}}
            ).to_list(length=None)
            joined = {
                c["contract_id"]: {
                    "contract_value": c.get("contract_value"),
                    "vendor_name": c.get("vendor_name"),
                }
                for c in contracts
            }
            for p in payments:
                if p.get("contract_id") in joined:
                    p["contracts"] = joined[p["contract_id"]]
        return payments

    # ----- anomalies -----
    async def insert_anomalies(self, docs: Iterable[dict]):
        return await self.db.anomalies.insert_many(list(docs), ordered=False)

    async def get_anomalies(self, anomaly_type: Optional[str] = None,
                            severity: Optional[str] = None, limit: int = 100):
        q = {}
        if anomaly_type:
            q["anomaly_type"] = anomaly_type
        if severity:
            q["severity"] = severity

        cursor = self.db.anomalies.find(q).sort("combined_score", DESCENDING).limit(limit)
        return await cursor.to_list(length=limit)

    # ----- hash chain -----
    async def get_latest_anchor(self, record_type: str) -> Optional[dict]:
        cursor = self.db.block_anchors.find({"record_type": record_type}).sort(CHAIN_ORDER_DESC).limit(1)
        latest = await cursor.to_list(length=1)
        return latest[0] if latest else None

    async def get_anchor_for_record(self, record_type: str, record_id: str) -> Optional[dict]:
        return await self.db.block_anchors.find_one({"record_type": record_type, "record_id": record_id})

    async def get_anchor_chain(self, record_type: str) -> List[dict]:
        cursor = self.db.block_anchors.find({"record_type": record_type}).sort(CHAIN_ORDER_ASC)
        return await cursor.to_list(length=None)

    # create helpful indexes (run at startup)
    async def ensure_indexes(self):
        await self.db.budgets.create_index("budget_id")
        await self.db.contracts.create_index("contract_id")
        await self.db.vendors.create_index("vendor_id")
        await self.db.anomalies.create_index([("anomaly_type", 1), ("severity", 1)])
        await self.db.anomalies.create_index([("combined_score", -1)])
        await self.db.block_anchors.create_index([("record_type", 1), ("created_at", -1)])
        await self.db.block_anchors.create_index([("record_type", 1), ("record_id", 1)])
        # at most one successor per chain tail
        await self.db.block_anchors.create_index(
            [("record_type", 1), ("prev_hash", 1)], unique=True
        )
        await self.db.anchor_outbox.create_index([("created_at", 1)])
