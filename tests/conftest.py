"""
Shared fixtures: an in-memory stand-in for a Motor database.

Only the slice of the Motor API the services touch is covered:
find / sort / limit / to_list, find_one, insert_one, insert_many,
update_one ($set, $inc), delete_one and create_index (unique indexes
are enforced on insert).
"""
import asyncio
import copy
import os
import sys

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

# Ensure package root is on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict):
            if "$ne" in cond and value == cond["$ne"]:
                return False
            if "$in" in cond and value not in cond["$in"]:
                return False
        elif value != cond:
            return False
    return True


class InsertOneResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class InsertManyResult:
    def __init__(self, inserted_ids):
        self.inserted_ids = inserted_ids


class FakeCursor:
    def __init__(self, docs, delay: float = 0):
        self._docs = docs
        self._limit = None
        self._delay = delay

    def sort(self, key, direction=1):
        keys = key if isinstance(key, list) else [(key, direction)]
        # stable sort, least significant key first
        for field, order in reversed(keys):
            self._docs.sort(
                key=lambda d: (d.get(field) is not None, d.get(field) if d.get(field) is not None else 0),
                reverse=order < 0,
            )
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    async def to_list(self, length=None):
        if self._delay:
            await asyncio.sleep(self._delay)
        docs = self._docs
        for bound in (self._limit, length):
            if bound:
                docs = docs[:bound]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    def __init__(self, name: str, delay: float = 0):
        self.name = name
        self.docs = []
        self.unique_indexes = []
        self.delay = delay

    def find(self, query=None):
        return FakeCursor([d for d in self.docs if _matches(d, query or {})], self.delay)

    async def find_one(self, query=None):
        for d in self.docs:
            if _matches(d, query or {}):
                return copy.deepcopy(d)
        return None

    def _check_unique(self, doc: dict):
        for fields in self.unique_indexes:
            for existing in self.docs:
                if all(existing.get(f) == doc.get(f) for f in fields):
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name}")

    async def insert_one(self, doc: dict):
        self._check_unique(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return InsertOneResult(doc["_id"])

    async def insert_many(self, docs, ordered=True):
        ids = []
        for doc in docs:
            result = await self.insert_one(doc)
            ids.append(result.inserted_id)
        return InsertManyResult(ids)

    async def update_one(self, query: dict, update: dict):
        for d in self.docs:
            if _matches(d, query):
                d.update(update.get("$set", {}))
                for field, step in update.get("$inc", {}).items():
                    d[field] = d.get(field, 0) + step
                return

    async def delete_one(self, query: dict):
        for i, d in enumerate(self.docs):
            if _matches(d, query):
                del self.docs[i]
                return

    async def create_index(self, keys, unique=False, **kwargs):
        if unique:
            fields = [keys] if isinstance(keys, str) else [k for k, _ in keys]
            self.unique_indexes.append(fields)
        return "_".join(fields) if unique else "index"


class FailingCollection(FakeCollection):
    """Every read and write raises, like an unreachable server."""

    def find(self, query=None):
        raise RuntimeError(f"{self.name} unavailable")

    async def find_one(self, query=None):
        raise RuntimeError(f"{self.name} unavailable")

    async def insert_one(self, doc: dict):
        raise RuntimeError(f"{self.name} unavailable")

    async def insert_many(self, docs, ordered=True):
        raise RuntimeError(f"{self.name} unavailable")


class FakeDatabase:
    def __init__(self, failing=(), delay: float = 0):
        self._collections = {}
        self._failing = set(failing)
        self._delay = delay

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            cls = FailingCollection if name in self._failing else FakeCollection
            self._collections[name] = cls(name, self._delay)
        return self._collections[name]

    def __getattr__(self, name: str) -> FakeCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def make_db():
    """Factory for databases with failing or slow collections."""
    return FakeDatabase
