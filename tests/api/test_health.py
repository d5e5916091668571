"""
API tests for health endpoints and cross-cutting HTTP behaviour.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from backend.boundary.db import get_async_db
from backend.main import create_app


@pytest.fixture
def mock_session():
    """Session whose execute can be made to fail."""
    session = AsyncMock()
    session.execute = AsyncMock(return_value=None)
    return session


@pytest.fixture
def client(mock_session):
    """Create test client with the database session overridden."""
    app = create_app()

    async def override_db():
        yield mock_session

    app.dependency_overrides[get_async_db] = override_db
    return TestClient(app)


class TestHealth:
    """Test suite for health checks."""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "message": "Server Healthy"}

    def test_health_db(self, client, mock_session):
        response = client.get("/api/v1/health/db")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        mock_session.execute.assert_awaited_once()

    def test_health_db_unreachable(self, client, mock_session):
        mock_session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))

        response = client.get("/api/v1/health/db")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestHttpEnvelope:
    """Test suite for correlation ids and framework errors."""

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/v1/health", headers={"X-Correlation-ID": "req-123"})

        assert response.headers["X-Correlation-ID"] == "req-123"

    def test_correlation_id_is_generated(self, client):
        response = client.get("/api/v1/health")

        assert response.headers["X-Correlation-ID"]

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
