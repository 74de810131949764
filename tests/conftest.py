"""
Shared fixtures: an in-memory Firestore, a fake Firebase Auth client and a
configured backend handle.

The Firestore double covers what the app uses: collection/document refs,
chained equality ``where`` + ``limit`` + ``stream``, and ``on_snapshot``
watches that fire synchronously on every write.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
import copy
import itertools
import threading
import uuid

import pytest
from fastapi.testclient import TestClient
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from google.api_core import exceptions as google_exceptions

from aidatlas.config.backend import Backend, configure_backend
from aidatlas.functions import classify_request, map_token
from aidatlas.services.functions_client import FunctionsClient
from aidatlas.services.request_repository import HELP_REQUESTS


# ---------------------------------------------------------------------------
# Firestore double
# ---------------------------------------------------------------------------

class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = copy.deepcopy(data)
        self.exists = data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeWatch:
    def __init__(self, collection, callback):
        self._collection = collection
        self._callback = callback

    def unsubscribe(self):
        self._collection.watchers.discard(self)


class FakeDocumentRef:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    def get(self):
        return FakeSnapshot(self.id, self._collection.docs.get(self.id))

    def set(self, data):
        self._collection.db.check_fail("set", self._collection.name)
        existed = self.id in self._collection.docs
        self._collection.docs[self.id] = copy.deepcopy(data)
        self._collection.notify("MODIFIED" if existed else "ADDED", self.id)

    def update(self, changes):
        self._collection.db.check_fail("update", self._collection.name)
        if self.id not in self._collection.docs:
            raise google_exceptions.NotFound(f"No document to update: {self.id}")
        self._collection.docs[self.id].update(copy.deepcopy(changes))
        self._collection.notify("MODIFIED", self.id)

    def delete(self):
        if self._collection.docs.pop(self.id, None) is not None:
            self._collection.notify("REMOVED", self.id)


class FakeQuery:
    def __init__(self, collection, filters=(), limit=None):
        self._collection = collection
        self._filters = tuple(filters)
        self._limit = limit

    def where(self, field_path, op_string, value):
        assert op_string == "==", "only equality filters are supported"
        return FakeQuery(self._collection, self._filters + ((field_path, value),), self._limit)

    def limit(self, count):
        return FakeQuery(self._collection, self._filters, count)

    def stream(self):
        self._collection.db.check_fail("stream", self._collection.name)
        results = []
        for doc_id, data in list(self._collection.docs.items()):
            if all(data.get(field) == value for field, value in self._filters):
                results.append(FakeSnapshot(doc_id, data))
        if self._limit is not None:
            results = results[: self._limit]
        return iter(results)


class FakeCollection(FakeQuery):
    def __init__(self, db, name):
        self.db = db
        self.name = name
        self.docs = {}
        self.watchers = set()
        super().__init__(self)

    def document(self, doc_id=None):
        return FakeDocumentRef(self, doc_id or uuid.uuid4().hex[:20])

    def on_snapshot(self, callback):
        watch = FakeWatch(self, callback)
        self.watchers.add(watch)
        # Initial snapshot: every existing document as ADDED
        changes = [self._change("ADDED", doc_id) for doc_id in list(self.docs)]
        callback(self._snapshots(), changes, datetime.now(timezone.utc))
        return watch

    def notify(self, type_name, doc_id):
        changes = [self._change(type_name, doc_id)]
        for watch in list(self.watchers):
            watch._callback(self._snapshots(), changes, datetime.now(timezone.utc))

    def _snapshots(self):
        return [FakeSnapshot(doc_id, data) for doc_id, data in list(self.docs.items())]

    def _change(self, type_name, doc_id):
        return SimpleNamespace(
            type=SimpleNamespace(name=type_name),
            document=FakeSnapshot(doc_id, self.docs.get(doc_id)),
        )


class FakeFirestore:
    def __init__(self):
        self._collections = {}
        self._lock = threading.Lock()
        self.failures = {}

    def collection(self, name):
        with self._lock:
            if name not in self._collections:
                self._collections[name] = FakeCollection(self, name)
            return self._collections[name]

    def fail(self, operation, collection, error=None):
        """Make ``operation`` (set/update/stream) on ``collection`` raise."""
        self.failures[(operation, collection)] = error or RuntimeError(f"{operation} on {collection} failed")

    def check_fail(self, operation, collection):
        error = self.failures.get((operation, collection))
        if error is not None:
            raise error


# ---------------------------------------------------------------------------
# Firebase Auth double
# ---------------------------------------------------------------------------

class FakeAuth:
    """Mirrors the firebase_admin.auth calls the session observer makes."""

    def __init__(self):
        self._id_tokens = {}
        self._cookies = {}
        self._counter = itertools.count(1)
        self.revoked = []
        self.fail_revoke = False

    def add_user(self, uid, email=None, name=None):
        token = f"id-token-{uid}"
        self._id_tokens[token] = {"uid": uid, "email": email or f"{uid}@example.org", "name": name or uid}
        return token

    def verify_id_token(self, id_token):
        if id_token not in self._id_tokens:
            raise firebase_auth.InvalidIdTokenError("Invalid ID token")
        return dict(self._id_tokens[id_token])

    def create_session_cookie(self, id_token, expires_in=None):
        claims = self.verify_id_token(id_token)
        cookie = f"cookie-{claims['uid']}-{next(self._counter)}"
        self._cookies[cookie] = claims
        return cookie

    def verify_session_cookie(self, cookie, check_revoked=False):
        if cookie not in self._cookies:
            raise firebase_auth.InvalidSessionCookieError("Invalid session cookie")
        return dict(self._cookies[cookie])

    def revoke_refresh_tokens(self, uid):
        if self.fail_revoke:
            raise firebase_exceptions.UnavailableError("auth backend unavailable")
        self.revoked.append(uid)
        for cookie in [c for c, claims in self._cookies.items() if claims["uid"] == uid]:
            del self._cookies[cookie]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

MAP_TOKEN = "pk.test-token"


def stub_handlers(calls=None, classification=None, map_status=200):
    """Function handlers that record their calls instead of reaching out."""
    calls = calls if calls is not None else []

    def token_handler(body=None):
        calls.append((map_token.NAME, body))
        if map_status != 200:
            return map_status, {"error": "MAPBOX_PUBLIC_TOKEN is not configured"}
        return 200, {"token": MAP_TOKEN}

    def classify_handler(body=None):
        calls.append((classify_request.NAME, body))
        return 200, classification

    return {map_token.NAME: token_handler, classify_request.NAME: classify_handler}


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def fake_auth():
    return FakeAuth()


@pytest.fixture
def function_calls():
    return []


@pytest.fixture
def backend(fake_db, fake_auth, function_calls):
    handle = Backend(
        fake_db,
        auth_client=fake_auth,
        functions=FunctionsClient(handlers=stub_handlers(function_calls, {"suggested_category": "medical"})),
    )
    configure_backend(handle)
    yield handle
    configure_backend(None)


@pytest.fixture
def client(backend):
    from aidatlas.main import app
    return TestClient(app)


@pytest.fixture
def volunteer(backend, fake_auth):
    """A signed-in volunteer: (cookie, session)."""
    return backend.sessions.sign_in(fake_auth.add_user("vol-1", name="Vera Volunteer"))


@pytest.fixture
def auth_headers(volunteer):
    cookie, _ = volunteer
    return {"Authorization": f"Bearer {cookie}"}


_base_time = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)


def seed_request(db, minutes=0, **overrides):
    """Write a help request straight into the fake Firestore and return its id."""
    created = _base_time + timedelta(minutes=minutes)
    record = {
        "user_id": "victim-1",
        "title": "Need help",
        "description": "Details",
        "category": "food",
        "urgency": "medium",
        "location_lat": 29.95,
        "location_lng": -90.07,
        "location_address": "Canal St",
        "status": "pending",
        "responder_id": None,
        "ai_classification": None,
        "created_at": created,
        "updated_at": created,
    }
    record.update(overrides)
    ref = db.collection(HELP_REQUESTS).document()
    ref.set(record)
    return ref.id
