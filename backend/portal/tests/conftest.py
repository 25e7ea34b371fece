import os

# Settings are read at import time; configure them before any portal import
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("ADMIN_EMAILS", "boss@example.com, Chief@Example.com")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RESEND_API_KEY", "re_test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_URL", "https://portal.example.com")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import portal.models  # noqa: F401
from portal.core.config import Settings
from portal.core.database import get_db
from portal.core.deps import get_mailer
from portal.main import app
from portal.models.base import Base
from portal.services.mailer import MailerError


class RecordingMailer:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def send(self, to: str, subject: str, html: str) -> None:
        if self.fail:
            raise MailerError("dispatch failed")
        self.sent.append({"to": to, "subject": subject, "html": html})


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def failing_mailer():
    return RecordingMailer(fail=True)


@pytest.fixture
def test_settings():
    return Settings(
        jwt_secret="unit-test-secret-key-with-enough-length",
        admin_emails="",
        database_url="sqlite://",
        resend_api_key="re_test",
    )


@pytest.fixture
def client(engine, mailer):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    def _register(email: str, password: str = "pw123456", name: str | None = None) -> dict:
        r = client.post("/api/auth", json={"action": "register", "email": email, "password": password, "name": name})
        assert r.status_code == 201, r.text
        return r.json()

    return _register
