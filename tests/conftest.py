import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("FIREBASE_PROJECT_ID", "brnno-test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace import cache as cache_module
from marketplace import rate_limiter
from marketplace.auth import get_session, open_session
from marketplace.collections import COLLECTION_USERS
from marketplace.database import Base
from marketplace.domain.bookings.service import get_settlement_queue
from marketplace.main import app
from marketplace.services.location_service import GooglePlacesClient, get_location_client
from marketplace.services.payment_service import StripePaymentClient, get_payment_client
from marketplace.session import Identity, SessionContext
from marketplace.store import SqlDocumentStore, get_document_store
from marketplace.wizard_store import WizardSessionStore, get_wizard_store


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the app uses"""

    def __init__(self):
        self.data = {}
        self.expiry = {}

    def ping(self):
        return True

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.expiry[key] = ttl
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                removed += 1
            self.expiry.pop(key, None)
        return removed

    def incr(self, key):
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value

    def expire(self, key, seconds):
        if key not in self.data:
            return False
        self.expiry[key] = seconds
        return True

    def ttl(self, key):
        if key not in self.data:
            return -2
        return self.expiry.get(key, -1)

    def keys(self, pattern="*"):
        prefix = pattern.rstrip("*")
        return [k for k in self.data if k.startswith(prefix)]


class FakeSettlementQueue:
    def __init__(self, fail: bool = False):
        self.enqueued = []
        self.fail = fail

    async def enqueue(self, booking_id):
        if self.fail:
            raise ConnectionError("redis down")
        self.enqueued.append(booking_id)
        return f"settle:{booking_id}"


@pytest.fixture
def store():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield SqlDocumentStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    engine.dispose()


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(rate_limiter, "redis_client", fake)
    monkeypatch.setattr(cache_module.cache, "redis_client", fake)
    return fake


@pytest.fixture
def settlement_queue():
    return FakeSettlementQueue()


@pytest.fixture
def client(store, fake_redis, settlement_queue):
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_wizard_store] = lambda: WizardSessionStore(client=fake_redis)
    app.dependency_overrides[get_settlement_queue] = lambda: settlement_queue
    app.dependency_overrides[get_payment_client] = lambda: StripePaymentClient(secret_key=None)
    app.dependency_overrides[get_location_client] = lambda: GooglePlacesClient(api_key=None)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(store):
    """Sign requests in as a given user; the profile is re-read from the store on every request"""

    def _login(uid="user-1", email="jane@example.com", **profile):
        if profile:
            store.set(
                COLLECTION_USERS,
                uid,
                {"uid": uid, "email": email, "displayName": "Jane Doe", "accountType": "customer",
                 "role": "user", **profile},
                merge=True,
            )

        def session_override() -> SessionContext:
            return open_session(Identity(uid=uid, email=email, display_name="Jane Doe"), store)

        app.dependency_overrides[get_session] = session_override
        return uid

    yield _login
    app.dependency_overrides.pop(get_session, None)
