# tests/test_auth.py
from sqlmodel import select

from budget_api.models import BlacklistedToken, Category, User
from budget_api.services.auth import AuthService
from conftest import PASSWORD, auth_headers, make_settings, register, signup


def test_register_returns_tokens_and_user(client):
    body = register(client, email="New@Test.com", name="  Ada ")
    assert body["accessToken"] and body["refreshToken"]
    assert body["user"]["email"] == "new@test.com"  # stored lower-cased
    assert body["user"]["name"] == "Ada"
    assert body["user"]["emailVerified"] is False
    assert "passwordHash" not in body["user"]


def test_register_creates_default_categories(client, session):
    user_id = register(client)["user"]["id"]
    cats = session.exec(select(Category).where(Category.user_id == user_id)).all()
    assert sorted((c.name, c.kind.value) for c in cats) == [
        ("Other", "expense"),
        ("Other", "income"),
    ]


def test_register_duplicate_email_is_409(client):
    register(client)
    r = client.post(
        "/api/auth/register", json={"email": "T@test.com", "password": PASSWORD}
    )
    assert r.status_code == 409
    assert r.json()["error"] == "EMAIL_IN_USE"


def test_register_losing_insert_race_is_409(client, session, monkeypatch):
    register(client, email="race@test.com")
    # the lookup misses, as it would for a request that checked before the
    # other one committed; the unique constraint has to catch it
    monkeypatch.setattr(AuthService, "_user_by_email", lambda self, email: None)
    r = client.post(
        "/api/auth/register", json={"email": "race@test.com", "password": PASSWORD}
    )
    assert r.status_code == 409
    assert r.json()["error"] == "EMAIL_IN_USE"
    assert len(session.exec(select(User).where(User.email == "race@test.com")).all()) == 1


def test_register_validation_error_is_400(client):
    r = client.post("/api/auth/register", json={"email": "nope", "password": "x"})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "VALIDATION_ERROR"
    fields = {d["field"] for d in body["details"]}
    assert {"email", "password"} <= fields


def test_login_success_and_bad_credentials(client):
    register(client)
    ok = client.post("/api/auth/login", json={"email": "t@test.com", "password": PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "t@test.com"

    wrong_pw = client.post("/api/auth/login", json={"email": "t@test.com", "password": "nope1234"})
    unknown = client.post("/api/auth/login", json={"email": "x@test.com", "password": PASSWORD})
    assert wrong_pw.status_code == unknown.status_code == 401
    # same body either way: nothing reveals which factor failed
    assert wrong_pw.json() == unknown.json()


def test_me_requires_bearer_token(client):
    assert client.get("/api/auth/me").status_code == 401
    r = client.get("/api/auth/me", headers=auth_headers("not-a-jwt"))
    assert r.status_code == 401
    assert r.json()["error"] == "UNAUTHORIZED"


def test_me_and_update_profile(client):
    headers = signup(client)
    assert client.get("/api/auth/me", headers=headers).json()["email"] == "t@test.com"

    r = client.put("/api/auth/profile", json={"name": "Grace"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Grace"


def test_refresh_issues_new_pair(client):
    tokens = register(client)
    r = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert r.status_code == 200
    fresh = r.json()
    assert fresh["accessToken"] != tokens["accessToken"]
    assert client.get("/api/auth/me", headers=auth_headers(fresh["accessToken"])).status_code == 200


def test_refresh_rejects_access_token(client):
    tokens = register(client)
    r = client.post("/api/auth/refresh", json={"refreshToken": tokens["accessToken"]})
    assert r.status_code == 401
    assert r.json()["error"] == "INVALID_TOKEN"


def test_refresh_token_is_not_an_access_token(client):
    tokens = register(client)
    r = client.get("/api/auth/me", headers=auth_headers(tokens["refreshToken"]))
    assert r.status_code == 401


def test_logout_revokes_the_access_token(client, session):
    headers = signup(client)
    assert client.post("/api/auth/logout", headers=headers).status_code == 200

    r = client.get("/api/auth/me", headers=headers)
    assert r.status_code == 401
    assert r.json()["error"] == "TOKEN_REVOKED"

    row = session.exec(select(BlacklistedToken)).one()
    assert row.reason == "logout"


def test_change_password(client):
    headers = signup(client)
    bad = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "wrong-pw", "newPassword": "newpass123"},
        headers=headers,
    )
    assert bad.status_code == 401

    r = client.post(
        "/api/auth/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "newpass123"},
        headers=headers,
    )
    assert r.status_code == 200
    # the token used to change the password is revoked
    assert client.get("/api/auth/me", headers=headers).json()["error"] == "TOKEN_REVOKED"

    old = client.post("/api/auth/login", json={"email": "t@test.com", "password": PASSWORD})
    new = client.post("/api/auth/login", json={"email": "t@test.com", "password": "newpass123"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_forgot_password_is_generic(client, mailbox):
    register(client)
    known = client.post("/api/auth/forgot-password", json={"email": "t@test.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@test.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert [e.to for e in mailbox.sent] == ["t@test.com"]


def test_reset_password_token_is_single_use(client, mailbox):
    register(client)
    client.post("/api/auth/forgot-password", json={"email": "t@test.com"})
    token = mailbox.last_token("t@test.com")

    first = client.post(
        "/api/auth/reset-password", json={"token": token, "newPassword": "resetpass1"}
    )
    assert first.status_code == 200

    second = client.post(
        "/api/auth/reset-password", json={"token": token, "newPassword": "resetpass2"}
    )
    assert second.status_code == 400
    assert second.json()["error"] == "INVALID_TOKEN"

    r = client.post("/api/auth/login", json={"email": "t@test.com", "password": "resetpass1"})
    assert r.status_code == 200


def test_reset_password_unknown_token(client):
    r = client.post(
        "/api/auth/reset-password", json={"token": "deadbeef", "newPassword": "resetpass1"}
    )
    assert r.status_code == 400


def test_verification_required_flow(tmp_path):
    from fastapi.testclient import TestClient

    from budget_api.main import create_app
    from conftest import RecordingEmailSender

    settings = make_settings(tmp_path, require_email_verification=True)
    app = create_app(settings)
    app.state.db.create_tables()
    mailbox = RecordingEmailSender(settings)
    app.state.email = mailbox

    with TestClient(app) as client:
        register(client)
        login = {"email": "t@test.com", "password": PASSWORD}

        r = client.post("/api/auth/login", json=login)
        assert r.status_code == 403
        assert r.json()["error"] == "EMAIL_NOT_VERIFIED"

        # resend gives a second, independent token; the first still works
        client.post("/api/auth/resend-verification", json={"email": "t@test.com"})
        token = mailbox.sent[0].link.split("token=")[1]
        r = client.post("/api/auth/verify-email", json={"token": token})
        assert r.status_code == 200
        assert mailbox.sent[-1].subject.startswith("Welcome")

        again = client.post("/api/auth/verify-email", json={"token": token})
        assert again.status_code == 400

        r = client.post("/api/auth/login", json=login)
        assert r.status_code == 200
        assert r.json()["user"]["emailVerified"] is True


def test_resend_verification_is_generic(client, mailbox):
    r1 = client.post("/api/auth/resend-verification", json={"email": "ghost@test.com"})
    assert r1.status_code == 200
    assert mailbox.sent == []


def test_email_failure_does_not_fail_registration(tmp_path, monkeypatch):
    from fastapi.testclient import TestClient

    from budget_api.errors import EmailDeliveryError
    from budget_api.main import create_app
    from budget_api.services.email import EmailSender

    settings = make_settings(
        tmp_path, require_email_verification=True, brevo_api_key="brevo-test-key"
    )
    app = create_app(settings)
    app.state.db.create_tables()

    def boom(self, url, payload, headers):
        raise EmailDeliveryError("provider down")

    monkeypatch.setattr(EmailSender, "_post_json", boom)
    with TestClient(app) as client:
        r = client.post(
            "/api/auth/register", json={"email": "t@test.com", "password": PASSWORD}
        )
        assert r.status_code == 201
        r = client.post("/api/auth/forgot-password", json={"email": "t@test.com"})
        assert r.status_code == 200


def test_delete_account_requires_password(client, session):
    headers = signup(client)
    r = client.request(
        "DELETE", "/api/auth/account", json={"password": "wrong-pw"}, headers=headers
    )
    assert r.status_code == 401
    assert session.exec(select(User)).first() is not None
