# tests/conftest.py
# Test setup: temporary SQLite DB, an app built from explicit Settings, and a
# fake email sender that records links instead of calling a provider.

import sys
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

# Ensure repo root on sys.path so "import budget_api" works
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from budget_api.config import Settings  # noqa: E402
from budget_api.main import create_app  # noqa: E402
from budget_api.services.email import EmailSender, SentEmail  # noqa: E402

PASSWORD = "pw123456"


class RecordingEmailSender(EmailSender):
    """Keeps every outgoing email in memory so tests can follow its link."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.sent: list[SentEmail] = []

    def _send(self, to, subject, html, link=None):
        email = SentEmail("test", None, to, subject, link)
        self.sent.append(email)
        return email

    def last_token(self, to: str) -> str:
        for email in reversed(self.sent):
            if email.to == to and email.link:
                return parse_qs(urlparse(email.link).query)["token"][0]
        raise AssertionError(f"no email with a link was sent to {to}")


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'test_budget.db'}",
        jwt_access_secret="test-access-secret-0123456789-abcdef",
        jwt_refresh_secret="test-refresh-secret-0123456789-abcdef",
        bcrypt_rounds=4,  # fastest cost bcrypt accepts
        token_cleanup_interval_minutes=0,  # no background scheduler in tests
        app_url="http://frontend.test",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def app(settings):
    fastapi_app = create_app(settings)
    fastapi_app.state.db.create_tables()
    fastapi_app.state.email = RecordingEmailSender(settings)
    return fastapi_app


@pytest.fixture()
def mailbox(app) -> RecordingEmailSender:
    return app.state.email


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session(app):
    # Same database the client talks to
    with app.state.db.session() as s:
        yield s


def register(client, email="t@test.com", password=PASSWORD, name=None):
    body = {"email": email, "password": password}
    if name is not None:
        body["name"] = name
    r = client.post("/api/auth/register", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup(client, email="t@test.com", password=PASSWORD) -> dict:
    """Register and return ready-to-use bearer headers."""
    return auth_headers(register(client, email, password)["accessToken"])
