import asyncio
import copy
from types import SimpleNamespace

import pytest
from pymongo.errors import DuplicateKeyError

from app.config.database import db_config, Collections


def _matches(document, query):
    for field, expected in query.items():
        if isinstance(expected, dict) and "$ne" in expected:
            if document.get(field) == expected["$ne"]:
                return False
        elif document.get(field) != expected:
            return False
    return True


class FakeChangeStream:
    """Async iterator over canned documents; also serves as a find() cursor"""

    def __init__(self, changes):
        self._changes = iter(changes)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._changes)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """In-memory stand-in for a motor collection, keyed by `_id`"""

    def __init__(self, name):
        self.name = name
        self.documents = {}
        self.changes = []
        self.calls = []
        self.watch_calls = []
        self._failures = {}
        # Raised by watch() whenever a resume token is passed
        self.resume_error = None

    def fail(self, operation, exc, times=1):
        self._failures[operation] = [exc, times]

    def _record(self, operation):
        self.calls.append(operation)
        failure = self._failures.get(operation)
        if failure:
            exc, times = failure
            if times <= 1:
                del self._failures[operation]
            else:
                failure[1] = times - 1
            raise exc

    def count(self, operation):
        return self.calls.count(operation)

    async def find_one(self, query, projection=None):
        self._record("find_one")
        # Suspend like a real round trip so concurrent callers interleave
        await asyncio.sleep(0)
        for document in self.documents.values():
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query=None):
        self._record("find")
        matching = [copy.deepcopy(d) for d in self.documents.values() if _matches(d, query or {})]
        return FakeChangeStream(matching)

    async def insert_one(self, document):
        self._record("insert_one")
        key = document["_id"]
        if key in self.documents:
            raise DuplicateKeyError(
                f"E11000 duplicate key error collection: {self.name} dup key: {{ _id: \"{key}\" }}",
                11000,
            )
        self.documents[key] = copy.deepcopy(document)
        return SimpleNamespace(inserted_id=key)

    async def update_one(self, query, update):
        self._record("update_one")
        for document in self.documents.values():
            if _matches(document, query):
                document.update(copy.deepcopy(update["$set"]))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    def watch(self, pipeline=None, resume_after=None):
        self.watch_calls.append(resume_after)
        if resume_after is not None and self.resume_error is not None:
            raise self.resume_error
        changes = self.changes
        if resume_after is not None:
            tokens = [change["_id"] for change in changes]
            changes = changes[tokens.index(resume_after) + 1:]
        return FakeChangeStream(list(changes))


class FakeAdmin:
    def __init__(self):
        self.reachable = True

    async def command(self, name):
        if not self.reachable:
            from pymongo.errors import ServerSelectionTimeoutError
            raise ServerSelectionTimeoutError("localhost:27017: connection refused")
        return {"ok": 1.0}


class FakeClient:
    def __init__(self):
        self.admin = FakeAdmin()
        self.closed = False

    def close(self):
        self.closed = True


class FakeDatabase:
    def __init__(self):
        self.client = FakeClient()
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    @property
    def bookings(self):
        return self[Collections.BOOKINGS]

    @property
    def payments(self):
        return self[Collections.PAYMENTS]

    @property
    def payouts(self):
        return self[Collections.PAYOUTS]


@pytest.fixture(autouse=True)
def db():
    """Point the process-wide datastore handle at an in-memory database"""
    database = FakeDatabase()
    db_config.client = database.client
    db_config.database = database
    yield database
    db_config.client = None
    db_config.database = None


@pytest.fixture(autouse=True)
def developer_account(monkeypatch):
    monkeypatch.delenv("DEVELOPER_ACCOUNT_ID", raising=False)


@pytest.fixture
def booking(db):
    document = {
        "_id": "booking-1",
        "providerId": "provider-7",
        "customerId": "customer-3",
        "status": "unpaid",
        "paymentConfirmed": False,
    }
    db.bookings.documents[document["_id"]] = document
    return document

