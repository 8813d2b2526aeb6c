"""Tests for login, logout and current-user API handlers."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from src.gatekeeper.auth.dependencies import set_login_history_store, set_verification_manager
from src.gatekeeper.auth.exceptions import RateLimitedError
from src.gatekeeper.auth.manager import VerificationManager
from src.gatekeeper.auth.models import Identity
from src.gatekeeper.database.login_history import InMemoryLoginHistoryStore
from src.gatekeeper.services.rate_limiter import limiter

JANE = Identity(user_id="42", name="Jane", username="jane", provider="x")
ALICE = Identity(user_id="u1", email="a@b.com", name="Alice", provider="google")


def mock_verifier(result=None, side_effect=None) -> Mock:
    verifier = Mock()
    verifier.verify = AsyncMock(return_value=result, side_effect=side_effect)
    return verifier


@pytest.fixture
def google_verifier() -> Mock:
    return mock_verifier(ALICE)


@pytest.fixture
def x_verifier() -> Mock:
    return mock_verifier(JANE)


@pytest.fixture
def login_history() -> InMemoryLoginHistoryStore:
    return InMemoryLoginHistoryStore()


@pytest.fixture(autouse=True)
def setup_auth(google_verifier, x_verifier, login_history):
    """Inject verifiers and login history, and switch off request throttling."""
    manager = VerificationManager()
    manager.register("google", google_verifier)
    manager.register("x", x_verifier)
    set_verification_manager(manager)
    set_login_history_store(login_history)
    limiter.enabled = False
    yield
    limiter.enabled = True
    set_verification_manager(None)
    set_login_history_store(None)


class TestLogin:
    """Tests for POST /auth/{provider}/login."""

    def test_x_login_success(self, client: TestClient, x_verifier, login_history):
        response = client.post(
            "/api/v1/auth/x/login",
            json={"token": "x-token"},
            headers={"User-Agent": "pytest-agent"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["logged_in"] is True
        assert data["user"]["user_id"] == "42"
        assert data["user"]["username"] == "jane"
        assert data["user"]["provider"] == "x"
        x_verifier.verify.assert_awaited_once_with("x-token")

        assert len(login_history.entries) == 1
        entry = login_history.entries[0]
        assert entry.user_id == "42"
        assert entry.provider == "x"
        assert entry.user_agent == "pytest-agent"

    def test_google_login_only_tries_google(self, client: TestClient, google_verifier, x_verifier):
        response = client.post("/api/v1/auth/google/login", json={"token": "google-jwt"})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "a@b.com"
        x_verifier.verify.assert_not_called()

    def test_provider_path_is_case_insensitive(self, client: TestClient):
        response = client.post("/api/v1/auth/X/login", json={"token": "x-token"})

        assert response.status_code == 200

    def test_rejected_token(self, client: TestClient, x_verifier, login_history):
        x_verifier.verify.return_value = None

        response = client.post("/api/v1/auth/x/login", json={"token": "bad"})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "message": "Authentication failed"}
        assert login_history.entries == []

    def test_unknown_provider(self, client: TestClient):
        response = client.post("/api/v1/auth/github/login", json={"token": "t"})

        assert response.status_code == 404
        assert response.json()["error"] == "ProviderNotConfigured"
        assert "github" in response.json()["message"]

    def test_empty_token_is_validation_error(self, client: TestClient, x_verifier):
        response = client.post("/api/v1/auth/x/login", json={"token": ""})

        assert response.status_code == 422
        x_verifier.verify.assert_not_called()

    def test_rate_limited(self, client: TestClient, x_verifier):
        reset_at = datetime.now(timezone.utc) + timedelta(seconds=120)
        x_verifier.verify.side_effect = RateLimitedError(
            "X API rate limit reached. Please wait a moment and try again.", reset_at=reset_at
        )

        response = client.post("/api/v1/auth/x/login", json={"token": "x-token"})

        assert response.status_code == 429
        data = response.json()
        assert data["error"] == "RateLimited"
        assert "rate limit" in data["message"]
        assert datetime.fromisoformat(data["reset_at"]) == reset_at
        assert 0 < int(response.headers["Retry-After"]) <= 120

    def test_rate_limited_without_reset(self, client: TestClient, x_verifier):
        x_verifier.verify.side_effect = RateLimitedError("slow down")

        response = client.post("/api/v1/auth/x/login", json={"token": "x-token"})

        assert response.status_code == 429
        assert response.json()["reset_at"] is None
        assert "Retry-After" not in response.headers

    def test_login_history_failure_does_not_fail_login(self, client: TestClient, login_history):
        login_history.record = AsyncMock(side_effect=RuntimeError("db down"))

        response = client.post("/api/v1/auth/x/login", json={"token": "x-token"})

        assert response.status_code == 200


class TestMe:
    """Tests for GET /auth/me."""

    def test_auto_detects_provider(self, client: TestClient, google_verifier, x_verifier):
        google_verifier.verify.return_value = None

        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer x-token"})

        assert response.status_code == 200
        assert response.json()["user_id"] == "42"
        google_verifier.verify.assert_awaited_once_with("x-token")
        x_verifier.verify.assert_awaited_once_with("x-token")

    def test_provider_hint_header(self, client: TestClient, google_verifier, x_verifier):
        response = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": "Bearer x-token", "X-Auth-Provider": "x"},
        )

        assert response.status_code == 200
        google_verifier.verify.assert_not_called()

    def test_missing_authorization(self, client: TestClient):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json() == {
            "error": "Unauthorized",
            "message": "Authentication token is required",
        }

    def test_malformed_authorization(self, client: TestClient):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Token abc"})

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication token format is invalid"

    def test_rejected_by_all_providers(self, client: TestClient, google_verifier, x_verifier):
        google_verifier.verify.return_value = None
        x_verifier.verify.return_value = None

        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication failed"


def test_logout(client: TestClient) -> None:
    response = client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logged out successfully"}


def test_providers(client: TestClient) -> None:
    response = client.get("/api/v1/auth/providers")

    assert response.status_code == 200
    assert response.json() == {"providers": ["google", "x"]}


def test_error_responses_are_documented(client: TestClient) -> None:
    paths = client.app.openapi()["paths"]

    login = paths["/api/v1/auth/{provider}/login"]["post"]["responses"]
    me = paths["/api/v1/auth/me"]["get"]["responses"]

    assert {"401", "404", "429"} <= set(login)
    assert {"401", "429"} <= set(me)
    assert login["429"]["content"]["application/json"]["schema"]["$ref"].endswith(
        "/ErrorResponse"
    )
