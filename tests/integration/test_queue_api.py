"""
Integration Tests - Queue API

Tests the HTTP surface: intake, claim / release / respond, feedback
lookup, and the mapping of queue errors to status codes.
"""

import asyncio
from typing import AsyncGenerator
from uuid import uuid4

import httpx
import pytest

from crosscare.api.dependencies import QueueServices, build_queue_services
from crosscare.main import create_application


@pytest.fixture
def services(test_settings, store, make_provider, payload) -> QueueServices:
    provider = make_provider(payload(), "Take a slow breath with me.")
    return build_queue_services(test_settings, store, provider=provider)


@pytest.fixture
async def client(services: QueueServices) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = create_application(services=services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    await services.shutdown()


async def _create(client: httpx.AsyncClient, **overrides) -> dict:
    body = {
        "requester_id": "student-1",
        "content": "I have anxiety about finals and can't sleep.",
        "cultural_context": "latino-hispanic",
        "priority": "high",
    }
    body.update(overrides)
    response = await client.post("/api/v1/queue/requests", json=body)
    assert response.status_code == 201
    return response.json()


class TestQueueApi:
    """Integration tests for the queue endpoints."""

    async def test_create_and_list(self, client: httpx.AsyncClient) -> None:
        created = await _create(client)

        assert created["status"] == "pending"
        assert created["tags"] == ["anxiety"]

        listing = await client.get("/api/v1/queue/available")
        assert listing.status_code == 200
        assert [item["id"] for item in listing.json()] == [created["id"]]

    async def test_anonymous_requester_hidden(self, client: httpx.AsyncClient) -> None:
        created = await _create(client, is_anonymous=True)

        assert created["requester_id"] is None
        item = (await client.get(f"/api/v1/queue/{created['id']}")).json()
        assert item["requester_id"] is None

    async def test_claim_respond_and_feedback(
        self,
        client: httpx.AsyncClient,
        services: QueueServices,
    ) -> None:
        """Test the full counselor cycle over HTTP."""
        created = await _create(client)
        item_url = f"/api/v1/queue/{created['id']}"

        claimed = await client.post(f"{item_url}/claim", json={"actor_id": "counselor-1"})
        assert claimed.status_code == 200
        assert claimed.json()["status"] == "claimed"
        assert claimed.json()["response_deadline"] is not None

        submitted = await client.post(
            f"{item_url}/responses",
            json={"actor_id": "counselor-1", "content": "Finals are stressful. What helps you unwind?"},
        )
        assert submitted.status_code == 201
        response_id = submitted.json()["response_id"]

        await services.analysis_runner.wait_idle()
        feedback = await client.get(f"/api/v1/responses/{response_id}/feedback")
        assert feedback.status_code == 200
        body = feedback.json()
        assert body["state"] == "attached"
        assert body["feedback"]["scores"]["empathy"] == 8.0
        assert body["feedback"]["analysisSucceeded"] is True

    async def test_item_and_counselor_responses_readable(self, client: httpx.AsyncClient) -> None:
        """Test that answered items show their responses and counselors can list theirs."""
        created = await _create(client)
        item_url = f"/api/v1/queue/{created['id']}"
        await client.post(f"{item_url}/claim", json={"actor_id": "counselor-1"})
        submitted = await client.post(
            f"{item_url}/responses",
            json={"actor_id": "counselor-1", "content": "That sounds exhausting."},
        )
        response_id = submitted.json()["response_id"]

        item = (await client.get(item_url)).json()
        assert [r["id"] for r in item["responses"]] == [response_id]
        assert item["responses"][0]["responder_type"] == "human"

        listing = await client.get("/api/v1/responses", params={"responder_id": "counselor-1"})
        assert listing.status_code == 200
        assert [r["id"] for r in listing.json()] == [response_id]

        other = await client.get("/api/v1/responses", params={"responder_id": "counselor-2"})
        assert other.json() == []

    async def test_response_listing_requires_responder(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/responses")

        assert response.status_code == 422

    async def test_competing_claim_conflicts(self, client: httpx.AsyncClient) -> None:
        created = await _create(client)
        item_url = f"/api/v1/queue/{created['id']}"
        await client.post(f"{item_url}/claim", json={"actor_id": "counselor-1"})

        second = await client.post(f"{item_url}/claim", json={"actor_id": "counselor-2"})

        assert second.status_code == 409
        assert second.json()["error"] == "AlreadyClaimedError"
        assert second.json()["current_status"] == "claimed"

    async def test_release_by_non_owner_conflicts(self, client: httpx.AsyncClient) -> None:
        created = await _create(client)
        item_url = f"/api/v1/queue/{created['id']}"
        await client.post(f"{item_url}/claim", json={"actor_id": "counselor-1"})

        response = await client.post(f"{item_url}/release", json={"actor_id": "counselor-2"})

        assert response.status_code == 409
        assert response.json()["error"] == "NotOwnerError"

    async def test_release_returns_item_to_queue(self, client: httpx.AsyncClient) -> None:
        created = await _create(client)
        item_url = f"/api/v1/queue/{created['id']}"
        await client.post(f"{item_url}/claim", json={"actor_id": "counselor-1"})

        response = await client.post(f"{item_url}/release", json={"actor_id": "counselor-1"})

        assert response.status_code == 200
        assert response.json()["status"] == "pending"
        assert response.json()["claimed_by"] is None

    async def test_submit_without_claim_conflicts(self, client: httpx.AsyncClient) -> None:
        created = await _create(client)

        response = await client.post(
            f"/api/v1/queue/{created['id']}/responses",
            json={"actor_id": "counselor-1", "content": "Hello"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "ExpiredClaimError"

    async def test_blank_content_rejected(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/v1/queue/requests",
            json={"requester_id": "student-1", "content": "   "},
        )

        assert response.status_code == 422
        assert response.json()["field"] == "content"

    async def test_unknown_item(self, client: httpx.AsyncClient) -> None:
        response = await client.get(f"/api/v1/queue/{uuid4()}")

        assert response.status_code == 404

    async def test_unknown_response(self, client: httpx.AsyncClient) -> None:
        response = await client.get(f"/api/v1/responses/{uuid4()}/feedback")

        assert response.status_code == 404

    async def test_ai_request_answered_in_background(
        self,
        client: httpx.AsyncClient,
        services: QueueServices,
    ) -> None:
        """Test that AI-mode requests never show up for counselors and get a reply."""
        created = await _create(client, response_mode="ai")

        listing = (await client.get("/api/v1/queue/available")).json()
        assert created["id"] not in [item["id"] for item in listing]

        item = {}
        for _ in range(50):
            item = (await client.get(f"/api/v1/queue/{created['id']}")).json()
            if item["status"] == "answered":
                break
            await asyncio.sleep(0.02)

        assert item["status"] == "answered"
        assert item["response_count"] == 1

    async def test_correlation_id_echoed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"] == "abc-123"

    async def test_readiness_reports_components(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/health/ready")

        assert response.status_code == 200
        components = response.json()["components"]
        assert components["analysis"] is True
        assert components["maintenance"] is False

    async def test_metrics_exposed(self, client: httpx.AsyncClient) -> None:
        await _create(client)

        response = await client.get("/api/v1/metrics")

        assert response.status_code == 200
        assert "crosscare_queue_requests_total" in response.text


class TestServiceWiring:
    """Tests for build_queue_services."""

    async def test_unconfigured_provider_disables_analysis(self, test_settings, store, make_provider) -> None:
        services = build_queue_services(test_settings, store, provider=make_provider(configured=False))

        assert services.analysis_runner is None
        assert services.responder is None

    async def test_configured_provider_enables_analysis(self, test_settings, store, make_provider) -> None:
        services = build_queue_services(test_settings, store, provider=make_provider("x"))

        assert services.analysis_runner is not None
        assert services.responder is not None
