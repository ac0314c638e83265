"""Tests for the FastAPI login router (optional; requires identity[fastapi])."""

from __future__ import annotations

import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx", reason="httpx required for TestClient")

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from disciplina_identity.contrib.fastapi import (
    create_login_router,
    require_role,
    session_dependency,
)
from disciplina_identity.exceptions import (
    INVALID_CREDENTIALS_MESSAGE,
    INVALID_OR_EXPIRED_CODE_MESSAGE,
    PASSWORD_EXPIRED_MESSAGE,
    UNSUPPORTED_RESEND_MESSAGE,
)
from disciplina_identity.mfa import TotpValidator


def _wrong(code: str) -> str:
    return "100000" if code != "100000" else "100001"


@pytest.fixture
def client(service):
    app = FastAPI()
    app.include_router(create_login_router(service))

    get_session = session_dependency(service.session_issuer)

    @app.get("/me")
    def me(session=Depends(get_session)):  # noqa: B008
        return {"user_id": session.user_id, "role": session.role}

    staff_only = require_role(service.session_issuer, "admin", "teacher")

    @app.get("/staff")
    def staff(session=Depends(staff_only)):  # noqa: B008
        return {"ok": True}

    with TestClient(app) as test_client:
        yield test_client


def _login(client, identifier: str, password: str):
    return client.post(
        "/auth/login", json={"identifier": identifier, "password": password}
    )


class TestLogin:
    def test_password_only_login(self, client, password) -> None:
        response = _login(client, "alice@school.edu", password)

        assert response.status_code == 200
        body = response.json()
        assert body["second_factor_required"] is False
        assert body["session"]["token_type"] == "Bearer"
        assert body["session"]["user_id"] == "user-alice"
        assert body["user"]["email"] == "alice@school.edu"
        assert "password_hash" not in body["user"]

    def test_bad_credentials_are_generic(self, client, password) -> None:
        unknown = _login(client, "nobody@school.edu", password)
        wrong = _login(client, "alice@school.edu", "nope")
        inactive = _login(client, "dave@school.edu", password)

        for response in (unknown, wrong, inactive):
            assert response.status_code == 401
            assert response.json() == {"detail": INVALID_CREDENTIALS_MESSAGE}

    def test_second_factor_required(self, client, password) -> None:
        response = _login(client, "bob@school.edu", password)

        assert response.status_code == 200
        body = response.json()
        assert body["second_factor_required"] is True
        assert body["session"] is None
        assert body["pending_user_id"] == "user-bob"
        assert body["method"] == "email"

    def test_misconfigured_second_factor(self, client, password) -> None:
        response = _login(client, "erin@school.edu", password)

        assert response.status_code == 409

    def test_expired_password(self, client, password, users, clock) -> None:
        clock.now = users["plain"].password_changed_at
        clock.advance(days=90)

        response = _login(client, "alice@school.edu", password)

        assert response.status_code == 403
        assert response.json() == {
            "detail": {
                "message": PASSWORD_EXPIRED_MESSAGE,
                "password_expired": True,
                "user_id": "user-alice",
            }
        }

    def test_expired_password_needs_the_right_password(
        self, client, users, clock
    ) -> None:
        clock.now = users["plain"].password_changed_at
        clock.advance(days=90)

        response = _login(client, "alice@school.edu", "nope")

        assert response.status_code == 401

    def test_validation_error(self, client) -> None:
        response = client.post("/auth/login", json={"identifier": "x"})

        assert response.status_code == 422


class TestSecondFactor:
    def test_email_flow(self, client, password, delivery_hook) -> None:
        _login(client, "bob@school.edu", password)

        response = client.post(
            "/auth/verify-mfa",
            json={"pending_user_id": "user-bob", "code": delivery_hook.last_code},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["session"]["user_id"] == "user-bob"
        assert body["user"]["role"] == "teacher"

    def test_wrong_code(self, client, password, delivery_hook) -> None:
        _login(client, "bob@school.edu", password)

        response = client.post(
            "/auth/verify-mfa",
            json={
                "pending_user_id": "user-bob",
                "code": _wrong(delivery_hook.last_code),
            },
        )

        assert response.status_code == 400
        assert response.json() == {"detail": INVALID_OR_EXPIRED_CODE_MESSAGE}

    def test_code_reuse_rejected(self, client, password, delivery_hook) -> None:
        _login(client, "bob@school.edu", password)
        payload = {"pending_user_id": "user-bob", "code": delivery_hook.last_code}

        assert client.post("/auth/verify-mfa", json=payload).status_code == 200
        assert client.post("/auth/verify-mfa", json=payload).status_code == 400

    def test_totp_flow(self, client, password, totp_secret, clock) -> None:
        _login(client, "carol@school.edu", password)
        code = TotpValidator().code_at(totp_secret, clock())

        response = client.post(
            "/auth/verify-mfa", json={"pending_user_id": "user-carol", "code": code}
        )

        assert response.status_code == 200

    def test_resend(self, client, password, delivery_hook) -> None:
        _login(client, "bob@school.edu", password)

        response = client.post("/auth/resend-mfa", json={"pending_user_id": "user-bob"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert len(delivery_hook.emails_sent) == 2

    def test_resend_totp_unavailable(self, client, password) -> None:
        _login(client, "carol@school.edu", password)

        response = client.post(
            "/auth/resend-mfa", json={"pending_user_id": "user-carol"}
        )

        assert response.status_code == 400
        assert response.json() == {"detail": UNSUPPORTED_RESEND_MESSAGE}

    def test_resend_unknown_attempt(self, client) -> None:
        response = client.post("/auth/resend-mfa", json={"pending_user_id": "ghost"})

        assert response.status_code == 400
        assert response.json() == {"detail": INVALID_OR_EXPIRED_CODE_MESSAGE}

    def test_cancel(self, client, password, delivery_hook) -> None:
        _login(client, "bob@school.edu", password)

        response = client.post("/auth/cancel-mfa", json={"pending_user_id": "user-bob"})
        assert response.status_code == 200
        assert response.json()["success"] is True

        verify = client.post(
            "/auth/verify-mfa",
            json={"pending_user_id": "user-bob", "code": delivery_hook.last_code},
        )
        assert verify.status_code == 400


class TestSessionDependencies:
    def _token(self, client, identifier: str, password: str) -> str:
        return _login(client, identifier, password).json()["session"]["token"]

    def test_bearer_session(self, client, password) -> None:
        token = self._token(client, "alice@school.edu", password)

        response = client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"user_id": "user-alice", "role": "admin"}

    def test_missing_token(self, client) -> None:
        response = client.get("/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client) -> None:
        response = client.get("/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    def test_expired_token(self, client, password, clock) -> None:
        token = self._token(client, "alice@school.edu", password)
        clock.advance(days=7)

        response = client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_role_allowed(self, client, password) -> None:
        token = self._token(client, "alice@school.edu", password)

        response = client.get("/staff", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200

    def test_role_forbidden(self, client, password, totp_secret, clock) -> None:
        _login(client, "carol@school.edu", password)
        code = TotpValidator().code_at(totp_secret, clock())
        token = client.post(
            "/auth/verify-mfa", json={"pending_user_id": "user-carol", "code": code}
        ).json()["session"]["token"]

        response = client.get("/staff", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
