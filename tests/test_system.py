# tests/test_system.py
# Health checks, auth guard edge cases, cleanup job and the email transport.

import http.client
import json
import logging
import socket
import ssl
import threading
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from budget_api import cleanup
from budget_api.errors import EmailDeliveryError
from budget_api.main import create_app
from budget_api.models import BlacklistedToken
from budget_api.scheduler import CleanupScheduler
from budget_api.services import email as email_mod
from budget_api.services.email import EmailSender
from conftest import PASSWORD, make_settings, register, signup


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "ok", "database": "up"}
    assert client.get("/health/ready").status_code == 200
    assert client.get("/health/live").json() == {"status": "ok"}


def test_health_reports_database_down(app, client, monkeypatch):
    monkeypatch.setattr(app.state.db, "ping", lambda: False)
    r = client.get("/health")
    assert r.status_code == 503
    assert r.json()["database"] == "down"
    assert client.get("/health/live").status_code == 200


def test_request_log_line_includes_user(client, caplog):
    headers = signup(client)
    with caplog.at_level(logging.INFO, logger="budget.req"):
        client.get("/api/auth/me", headers=headers)
    line = [r.getMessage() for r in caplog.records if r.name == "budget.req"][-1]
    assert line.startswith("GET /api/auth/me -> 200 in ")
    assert "user=None" not in line


def _broken_blacklist(*args, **kwargs):
    raise RuntimeError("blacklist table unavailable")


def test_blacklist_lookup_failure_fails_closed(client, monkeypatch):
    headers = signup(client)
    monkeypatch.setattr("budget_api.deps.is_token_blacklisted", _broken_blacklist)
    r = client.get("/api/auth/me", headers=headers)
    assert r.status_code == 401
    assert r.json()["error"] == "UNAUTHORIZED"


def test_blacklist_lookup_failure_can_fail_open(tmp_path, monkeypatch):
    app = create_app(make_settings(tmp_path, token_blacklist_fail_open=True))
    app.state.db.create_tables()
    monkeypatch.setattr("budget_api.deps.is_token_blacklisted", _broken_blacklist)
    with TestClient(app) as client:
        headers = signup(client)
        assert client.get("/api/auth/me", headers=headers).status_code == 200


def test_scheduler_run_once_purges_expired(app, client, session):
    tokens = register(client)
    session.add(
        BlacklistedToken(
            token="expired-token",
            user_id=tokens["user"]["id"],
            expires_at=datetime(2000, 1, 1),
        )
    )
    session.commit()

    scheduler = CleanupScheduler(app.state.db, interval_minutes=0)
    assert scheduler.run_once() == 1
    assert session.exec(select(BlacklistedToken)).all() == []


def test_scheduler_disabled_with_zero_interval(app):
    scheduler = CleanupScheduler(app.state.db, interval_minutes=0)
    scheduler.start()
    assert not scheduler.scheduler.running
    scheduler.stop()


def test_scheduler_start_returns_before_first_pass(app, monkeypatch):
    scheduler = CleanupScheduler(app.state.db, interval_minutes=60)
    release = threading.Event()
    ran = threading.Event()

    def slow_pass(source="manual"):
        release.wait(5)
        ran.set()
        return 0

    monkeypatch.setattr(scheduler, "run_once", slow_pass)
    try:
        scheduler.start()  # would block here if the pass ran inline
        job = scheduler.scheduler.get_job("token_cleanup")
        assert job is not None
        assert not ran.is_set()
        release.set()
        assert ran.wait(5)
    finally:
        release.set()
        scheduler.stop()


def test_cleanup_script(tmp_path, monkeypatch):
    settings = make_settings(tmp_path)
    app = create_app(settings)
    app.state.db.create_tables()
    monkeypatch.setattr(cleanup, "get_settings", lambda: settings)
    assert cleanup.main() == 0


# ---------- email transport ----------


class _FakeResponse:
    def __init__(self, body: dict):
        self._raw = json.dumps(body).encode("utf-8")

    def read(self):
        return self._raw

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_brevo_payload_and_link(tmp_path, monkeypatch):
    settings = make_settings(tmp_path, brevo_api_key="brevo-key", email_from="hi@budget.test")
    captured = {}

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["headers"] = dict(req.header_items())
        captured["body"] = json.loads(req.data)
        return _FakeResponse({"messageId": "m-1"})

    monkeypatch.setattr(email_mod, "urlopen", fake_urlopen)
    sent = EmailSender(settings).send_password_reset_email("u@test.com", "abc123")

    assert sent.provider == "brevo" and sent.message_id == "m-1"
    assert sent.link == "http://frontend.test/reset-password?token=abc123"
    assert captured["url"] == email_mod.BREVO_URL
    assert captured["headers"]["Api-key"] == "brevo-key"
    assert captured["body"]["to"] == [{"email": "u@test.com"}]
    assert "abc123" in captured["body"]["htmlContent"]


def test_resend_used_when_only_resend_configured(tmp_path, monkeypatch):
    settings = make_settings(tmp_path, resend_api_key="re-key")
    captured = {}

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["headers"] = dict(req.header_items())
        return _FakeResponse({"id": "r-1"})

    monkeypatch.setattr(email_mod, "urlopen", fake_urlopen)
    sent = EmailSender(settings).send_welcome_email("u@test.com")
    assert sent.provider == "resend" and sent.message_id == "r-1"
    assert captured["url"] == email_mod.RESEND_URL
    assert captured["headers"]["Authorization"] == "Bearer re-key"


def test_provider_error_becomes_delivery_error(tmp_path, monkeypatch):
    from urllib.error import URLError

    settings = make_settings(tmp_path, brevo_api_key="brevo-key")

    def fake_urlopen(req, timeout):
        raise URLError("connection refused")

    monkeypatch.setattr(email_mod, "urlopen", fake_urlopen)
    with pytest.raises(EmailDeliveryError):
        EmailSender(settings).send_verification_email("u@test.com", "tok")


@pytest.mark.parametrize(
    "error",
    [
        http.client.RemoteDisconnected("Remote end closed connection without response"),
        ConnectionResetError(104, "Connection reset by peer"),
        ssl.SSLError("handshake failed"),
    ],
)
def test_dropped_connection_becomes_delivery_error(tmp_path, monkeypatch, error):
    settings = make_settings(tmp_path, brevo_api_key="brevo-key")

    def fake_urlopen(req, timeout):
        raise error

    monkeypatch.setattr(email_mod, "urlopen", fake_urlopen)
    with pytest.raises(EmailDeliveryError):
        EmailSender(settings).send_password_reset_email("u@test.com", "tok")


def test_undecodable_provider_reply_becomes_delivery_error(tmp_path, monkeypatch):
    settings = make_settings(tmp_path, brevo_api_key="brevo-key")
    response = _FakeResponse({})
    response._raw = b"\xff\xfe not utf-8"
    monkeypatch.setattr(email_mod, "urlopen", lambda req, timeout: response)
    with pytest.raises(EmailDeliveryError):
        EmailSender(settings).send_welcome_email("u@test.com")


@pytest.fixture()
def hangup_url():
    """A local HTTP endpoint that reads each request and closes without replying."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen()

    def serve():
        while True:
            try:
                conn, _ = srv.accept()
            except OSError:
                return
            with conn:
                conn.recv(65536)

    threading.Thread(target=serve, daemon=True).start()
    yield f"http://127.0.0.1:{srv.getsockname()[1]}/v3/smtp/email"
    srv.close()


def test_provider_hanging_up_does_not_break_auth_flows(tmp_path, monkeypatch, hangup_url):
    monkeypatch.setattr(email_mod, "BREVO_URL", hangup_url)
    settings = make_settings(
        tmp_path,
        brevo_api_key="brevo-key",
        require_email_verification=True,
        email_timeout_secs=5,
    )
    app = create_app(settings)
    app.state.db.create_tables()

    with TestClient(app) as client:
        r = client.post(
            "/api/auth/register",
            json={"email": "hangup@test.com", "password": PASSWORD},
        )
        assert r.status_code == 201

        known = client.post("/api/auth/forgot-password", json={"email": "hangup@test.com"})
        unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@test.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()


def test_dev_mode_only_logs(tmp_path, caplog):
    sender = EmailSender(make_settings(tmp_path))
    assert not sender.enabled
    with caplog.at_level(logging.INFO):
        sent = sender.send_verification_email("u@test.com", "tok")
    assert sent.provider == "dev"
    assert "verify-email?token=tok" in caplog.text


def test_settings_reject_weak_or_shared_secrets(tmp_path):
    with pytest.raises(ValueError):
        make_settings(tmp_path, jwt_access_secret="short")
    # long enough for a human, too short for an HS256 key
    with pytest.raises(ValueError, match="32 characters"):
        make_settings(tmp_path, jwt_refresh_secret="r" * 31)
    with pytest.raises(ValueError):
        make_settings(
            tmp_path,
            jwt_access_secret="same-secret-0123456789-0123456789",
            jwt_refresh_secret="same-secret-0123456789-0123456789",
        )
    assert make_settings(tmp_path, jwt_refresh_secret="r" * 32).jwt_refresh_secret == "r" * 32
