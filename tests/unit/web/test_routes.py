"""Tests for the HTTP API routes."""

from types import SimpleNamespace
from uuid import uuid4

import httpx
import pytest

from sessionguard.web.server import create_fastapi_app

AUTH = {"Authorization": "Bearer secret-token"}


@pytest.fixture
async def client(app):
    """HTTP client bound to the API without running the database lifespan."""
    fastapi_app = create_fastapi_app(app, SimpleNamespace(cors_origins=[]))
    fastapi_app.state.app = app
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestAuthentication:
    """Tests for the service token check."""

    async def test_health_is_public(self, client):
        """Test that the health check needs no token."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_missing_token_rejected(self, client):
        """Test that API routes require the bearer token."""
        response = await client.post(f"/api/v1/sessions/{uuid4()}/reauth", json={})
        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    async def test_wrong_token_rejected(self, client):
        """Test that an unknown token is rejected."""
        response = await client.get(
            f"/api/v1/users/{uuid4()}/anomaly-statistics", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401


class TestSessionRoutes:
    """Tests for assessment and enforcement routes."""

    async def test_assessment(self, client, make_session, recorder):
        """Test that an assessment is returned with wire field names."""
        session = make_session()

        response = await client.post(
            f"/api/v1/sessions/{session.id}/assessment",
            json={"ip_address": "10.0.0.1", "user_agent": "curl/8.4.0"},
            headers=AUTH,
        )
        await recorder.drain()

        assert response.status_code == 200
        assert response.json() == {
            "hasAnomaly": True,
            "anomalyTypes": ["IP_DRIFT", "USER_AGENT_DRIFT"],
            "riskScore": 75,
            "action": "FORCE_REAUTH",
        }

    async def test_authorize_sets_risk_headers(self, client, make_session, chrome_ua, recorder):
        """Test that a warning passes with risk headers attached."""
        session = make_session()

        response = await client.post(
            f"/api/v1/sessions/{session.id}/authorize",
            json={"ip_address": "10.0.0.1", "user_agent": chrome_ua},
            headers=AUTH,
        )
        await recorder.drain()

        assert response.status_code == 200
        assert response.headers["X-Session-Risk-Score"] == "40"
        assert response.headers["X-Session-Has-Anomaly"] == "true"
        assert response.headers["X-Session-Anomaly-Types"] == "IP_DRIFT"

    async def test_authorize_clean_request(self, client, make_session, chrome_ua):
        """Test that a clean request carries no anomaly types header."""
        session = make_session()

        response = await client.post(
            f"/api/v1/sessions/{session.id}/authorize",
            json={"ip_address": "192.168.1.1", "user_agent": chrome_ua},
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.headers["X-Session-Has-Anomaly"] == "false"
        assert "X-Session-Anomaly-Types" not in response.headers

    async def test_authorize_revoked(self, client, make_session, recorder):
        """Test that forced re-authentication answers 401 with recovery hints."""
        session = make_session()

        response = await client.post(
            f"/api/v1/sessions/{session.id}/authorize",
            json={"ip_address": "10.0.0.1", "user_agent": "curl/8.4.0"},
            headers=AUTH,
        )
        await recorder.drain()

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "SESSION_ANOMALY_DETECTED"
        assert body["requiresReauth"] is True

    async def test_authorize_strict(self, client, make_session, chrome_ua, recorder):
        """Test that strict mode rejects a warning-level anomaly."""
        session = make_session()

        response = await client.post(
            f"/api/v1/sessions/{session.id}/authorize",
            json={"ip_address": "10.0.0.1", "user_agent": chrome_ua, "strict": True},
            headers=AUTH,
        )
        await recorder.drain()

        assert response.status_code == 401

    async def test_second_factor_unknown_session(self, client):
        """Test that confirming for a missing session is 404."""
        response = await client.post(f"/api/v1/sessions/{uuid4()}/second-factor", headers=AUTH)
        assert response.status_code == 404

    async def test_second_factor_confirmed(self, client, make_session, session_store):
        """Test that a confirmation is stored on the session."""
        session = make_session()

        response = await client.post(f"/api/v1/sessions/{session.id}/second-factor", headers=AUTH)

        assert response.status_code == 204
        assert session_store.sessions[session.id].security.second_factor_verified_at is not None

    async def test_reauth_unknown_session(self, client):
        """Test that revoking a missing session reports false."""
        response = await client.post(f"/api/v1/sessions/{uuid4()}/reauth", json={"reason": "test"}, headers=AUTH)
        assert response.status_code == 200
        assert response.json() == {"revoked": False}

    async def test_reauth_revokes(self, client, make_session, session_store):
        """Test that revoking an existing session reports true."""
        session = make_session()

        response = await client.post(f"/api/v1/sessions/{session.id}/reauth", json={}, headers=AUTH)

        assert response.json() == {"revoked": True}
        assert session_store.sessions[session.id].revocation.note == "Session anomaly detected"


class TestStatisticsRoute:
    """Tests for the statistics route."""

    async def test_empty_statistics(self, client):
        """Test the zeroed summary for a user without events."""
        response = await client.get(f"/api/v1/users/{uuid4()}/anomaly-statistics", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {
            "totalAnomalies": 0,
            "anomalyTypes": {},
            "recentEvents": [],
            "averageRiskScore": 0,
        }

    async def test_days_out_of_range(self, client):
        """Test that the window size is validated."""
        response = await client.get(f"/api/v1/users/{uuid4()}/anomaly-statistics?days=0", headers=AUTH)
        assert response.status_code == 422
