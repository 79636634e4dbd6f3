"""Tests for correlation ID middleware and error response shape.

Verifies:
- X-Request-ID header in responses
- Custom correlation ID echoing
- Debug ID in error responses
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from incident_log.main import app

pytestmark = pytest.mark.integration


def test_response_includes_correlation_id_header():
    """Every API response should include X-Request-ID header with valid UUID."""
    client = TestClient(app)

    response = client.get("/api/health")

    assert "x-request-id" in response.headers
    uuid.UUID(response.headers["x-request-id"])


def test_custom_correlation_id_echoed():
    client = TestClient(app)

    response = client.get("/api/health", headers={"X-Request-ID": "custom-id-123"})

    assert response.headers["x-request-id"] == "custom-id-123"


def test_error_response_includes_debug_id():
    client = TestClient(app)

    response = client.post("/api/events/evt-wembley-001/logs", json={})

    assert response.status_code == 401
    data = response.json()
    assert "debug_id" in data
    uuid.UUID(data["debug_id"])
    assert data["detail"] == "Missing authorization header"


def test_different_requests_get_different_ids():
    client = TestClient(app)

    first = client.get("/api/health").headers["x-request-id"]
    second = client.get("/api/health").headers["x-request-id"]

    assert first != second
