"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from src.gatekeeper.main import app


@pytest.fixture
def client() -> TestClient:
    """
    Provide FastAPI test client for API testing.

    The lifespan is not run, so tests inject their own verification manager
    with ``set_verification_manager``.

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """
    return TestClient(app)
