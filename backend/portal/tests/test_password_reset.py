import re
from datetime import timedelta

import pytest

from portal.core.config import settings
from portal.core.deps import get_mailer
from portal.core.errors import ResetTokenInvalid, ValidationFailed
from portal.core.security import digest_reset_token
from portal.core.timeutils import utcnow
from portal.main import app
from portal.models.user import User
from portal.services import auth_service


def _token_from(mail: dict) -> str:
    match = re.search(r"/reset-password\?token=([0-9a-f]{64})", mail["html"])
    assert match, mail["html"]
    return match.group(1)


def _login(client, email, password):
    return client.post("/api/auth", json={"action": "login", "email": email, "password": password})


def test_reset_request_is_enumeration_safe(client, register, mailer):
    register("exists@x.com")
    known = client.post("/api/forgot-password", json={"email": "exists@x.com"})
    unknown = client.post("/api/forgot-password", json={"email": "doesnotexist@x.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.content == unknown.content
    assert known.json()["success"] is True
    assert [m["to"] for m in mailer.sent] == ["exists@x.com"]


def test_reset_request_requires_email(client):
    r = client.post("/api/forgot-password", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Email is required"}


def test_reset_request_rejects_blank_email(client, mailer):
    r = client.post("/api/forgot-password", json={"email": "  \t "})
    assert r.status_code == 400
    assert r.json() == {"error": "Email is required"}
    assert mailer.sent == []


def test_reset_request_stores_hashed_token_with_one_hour_expiry(client, register, mailer, db):
    register("frank@example.com")
    before = utcnow()
    client.post("/api/forgot-password", json={"email": "Frank@Example.com"})

    token = _token_from(mailer.sent[0])
    assert mailer.sent[0]["html"].count(f"{settings.app_url}/reset-password?token={token}") == 1
    user = db.query(User).filter(User.email == "frank@example.com").one()
    assert user.reset_token_hash == digest_reset_token(token)
    assert user.reset_token_hash != token
    assert before + timedelta(minutes=59) < user.reset_token_expiry <= utcnow() + timedelta(hours=1)


def test_full_reset_flow_and_single_use(client, register, mailer):
    register("grace@example.com", "old-password")
    client.post("/api/forgot-password", json={"email": "grace@example.com"})
    token = _token_from(mailer.sent[0])

    r = client.post("/api/reset-password", json={"token": token, "password": "new-password"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Password has been reset successfully"}

    assert _login(client, "grace@example.com", "new-password").status_code == 200
    assert _login(client, "grace@example.com", "old-password").status_code == 401

    replay = client.post("/api/reset-password", json={"token": token, "password": "another-password"})
    assert replay.status_code == 400
    assert replay.json() == {"error": "Invalid or expired reset token"}
    assert _login(client, "grace@example.com", "new-password").status_code == 200


def test_new_request_overwrites_previous_token(client, register, mailer):
    register("henry@example.com")
    client.post("/api/forgot-password", json={"email": "henry@example.com"})
    client.post("/api/forgot-password", json={"email": "henry@example.com"})
    first, second = (_token_from(m) for m in mailer.sent)
    assert first != second

    assert client.post("/api/reset-password", json={"token": first, "password": "pw-first"}).status_code == 400
    assert client.post("/api/reset-password", json={"token": second, "password": "pw-second"}).status_code == 200


def test_expired_and_unknown_tokens_share_one_message(client, register, mailer, db):
    register("ivy@example.com")
    client.post("/api/forgot-password", json={"email": "ivy@example.com"})
    token = _token_from(mailer.sent[0])
    user = db.query(User).filter(User.email == "ivy@example.com").one()
    user.reset_token_expiry = utcnow() - timedelta(seconds=1)
    db.commit()

    expired = client.post("/api/reset-password", json={"token": token, "password": "pw123456"})
    unknown = client.post("/api/reset-password", json={"token": "0" * 64, "password": "pw123456"})
    assert expired.status_code == unknown.status_code == 400
    assert expired.content == unknown.content


def test_reset_requires_minimum_password_length(client, register, mailer):
    register("jack@example.com")
    client.post("/api/forgot-password", json={"email": "jack@example.com"})
    token = _token_from(mailer.sent[0])

    r = client.post("/api/reset-password", json={"token": token, "password": "12345"})
    assert r.status_code == 400
    assert r.json() == {"error": "Password must be at least 6 characters"}
    # The token survives a rejected attempt
    assert client.post("/api/reset-password", json={"token": token, "password": "123456"}).status_code == 200


def test_reset_rejects_password_with_nul_byte(client, register, mailer):
    register("nora@example.com")
    client.post("/api/forgot-password", json={"email": "nora@example.com"})
    token = _token_from(mailer.sent[0])

    r = client.post("/api/reset-password", json={"token": token, "password": "abc\u0000defg"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid password"}
    assert _login(client, "nora@example.com", "pw123456").status_code == 200
    assert client.post("/api/reset-password", json={"token": token, "password": "abcdefg"}).status_code == 200


def test_reset_requires_token_and_password(client):
    r = client.post("/api/reset-password", json={"token": "abc"})
    assert r.status_code == 400
    assert r.json() == {"error": "Token and password are required"}


def test_dispatch_failure_is_500_and_token_stays_valid(client, register, db, failing_mailer):
    register("kate@example.com")
    app.dependency_overrides[get_mailer] = lambda: failing_mailer

    r = client.post("/api/forgot-password", json={"email": "kate@example.com"})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to send reset email"}

    user = db.query(User).filter(User.email == "kate@example.com").one()
    assert user.reset_token_hash is not None
    assert user.reset_token_expiry > utcnow()


def test_service_reset_password_raises_typed_failures(db):
    with pytest.raises(ValidationFailed):
        auth_service.reset_password(db, settings, "whatever", "123")
    with pytest.raises(ResetTokenInvalid) as exc:
        auth_service.reset_password(db, settings, "f" * 64, "pw123456")
    assert exc.value.detail == "Invalid or expired reset token"
