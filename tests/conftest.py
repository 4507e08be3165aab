import os
import tempfile
import uuid

import pytest

# Settings are read at import time, so the environment is prepared first
TEST_DIR = tempfile.mkdtemp(prefix="dearly-tests-")
TEST_DB_PATH = os.path.join(TEST_DIR, "test.db")

os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["STORAGE_DIR"] = os.path.join(TEST_DIR, "storage")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["EMAIL_SERVICE"] = "gmail"
os.environ["EMAIL_USER"] = "dearly@example.com"
os.environ["EMAIL_SEND_DELAY_SECONDS"] = "0"
os.environ["REDIS_URL"] = ""
os.environ["FIREBASE_STORAGE_BUCKET"] = ""

from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from app import models
from app.config import settings
from app.main import app
from app.services.email_service import email_service
from app.utils.auth import AuthUser, verify_auth
from app.utils.rate_limit import default_rate_limiter

# plain sqlite engine on the same file, for schema setup and cleanup outside the event loop
sync_engine = create_engine(f"sqlite:///{TEST_DB_PATH}")
models.Base.metadata.create_all(sync_engine)


@pytest.fixture(autouse=True)
def clean_state():
    yield
    with sync_engine.begin() as conn:
        for table in reversed(models.Base.metadata.sorted_tables):
            conn.execute(table.delete())
    default_rate_limiter.reset()
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    """TestClient without the lifespan, so the scheduler never starts."""
    return TestClient(app)


@pytest.fixture
def db():
    return sync_engine


@pytest.fixture
def user_id():
    return f"user_{uuid.uuid4().hex[:20]}"


@pytest.fixture
def login():
    """login(uid) makes every authenticated request act as uid."""
    def _login(uid, email="owner@example.com"):
        async def _user():
            return AuthUser(uid=uid, email=email, email_verified=True)
        app.dependency_overrides[verify_auth] = _user
    return _login


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.error = None

    async def send_mail(self, mail_options):
        if self.error is not None:
            raise self.error
        self.sent.append(mail_options)
        return {"messageId": f"fake-{len(self.sent)}"}


@pytest.fixture
def mailer(monkeypatch):
    fake = FakeMailer()
    monkeypatch.setattr(email_service, "send_mail", fake.send_mail)
    return fake


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setattr(settings, "environment", "production")
    return settings


@pytest.fixture
def make_letter(client):
    def _make(uid, **payload):
        body = {"content": "Dear you, happy anniversary.", "receiverName": "Sam", "receiverEmail": "sam@example.com"}
        body.update(payload)
        response = client.post(f"/api/letters/{uid}", json=body)
        assert response.status_code == 201, response.text
        return response.json()
    return _make
