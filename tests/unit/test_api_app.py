"""Unit tests for the ghrelay.api.app application factory.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_app.py

"""

from __future__ import annotations

import falcon.asgi
import falcon.testing
import pytest

from ghrelay.api.app import AppDependencies, create_app
from tests.helpers.fakes import build_pipeline
from tests.helpers.github_payloads import DESTINATION_ID

WEBHOOK_PATH = f"/webhook/github/{DESTINATION_ID}"


@pytest.fixture
def health_client() -> falcon.testing.TestClient:
    """Build a test client for health-only mode."""
    return falcon.testing.TestClient(create_app())


@pytest.fixture
def full_client() -> falcon.testing.TestClient:
    """Build a test client with the webhook receiver."""
    deps = AppDependencies(pipeline=build_pipeline().pipeline)
    return falcon.testing.TestClient(create_app(deps))


class TestCreateAppHealthOnly:
    """Tests for create_app() without a pipeline."""

    def test_returns_falcon_app(self) -> None:
        """create_app() returns a Falcon ASGI App."""
        assert isinstance(create_app(), falcon.asgi.App), "expected Falcon ASGI App"

    def test_has_health_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /health."""
        result = health_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"
        assert result.json == {"status": "ok"}, "wrong /health body"

    def test_has_ready_route(self, health_client: falcon.testing.TestClient) -> None:
        """Without a readiness check the service is always ready."""
        result = health_client.simulate_get("/ready")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert result.json == {"status": "ready"}, "wrong /ready body"

    def test_webhook_route_not_registered(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Without a pipeline the webhook endpoint returns 404."""
        result = health_client.simulate_post(WEBHOOK_PATH)
        assert result.status == falcon.HTTP_404, "expected HTTP 404"


class TestCreateAppWithPipeline:
    """Tests for create_app() with the webhook receiver."""

    def test_health_still_served(self, full_client: falcon.testing.TestClient) -> None:
        """The full app still responds to /health."""
        result = full_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"

    def test_webhook_route_registered(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """With a pipeline the webhook endpoint is registered."""
        result = full_client.simulate_post(WEBHOOK_PATH)
        assert result.status == falcon.HTTP_400, "missing header should be 400"

    def test_webhook_route_rejects_get(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """Only POST is accepted on the webhook route."""
        result = full_client.simulate_get(WEBHOOK_PATH)
        assert result.status == falcon.HTTP_405, "expected HTTP 405"


class TestReadiness:
    """Tests for the /ready readiness check."""

    def test_ready_when_check_passes(self) -> None:
        """A passing check reports ready."""

        async def check() -> None:
            return None

        client = falcon.testing.TestClient(
            create_app(AppDependencies(readiness_check=check))
        )

        result = client.simulate_get("/ready")

        assert result.status == falcon.HTTP_200
        assert result.json == {"status": "ready"}

    def test_unavailable_when_check_fails(self) -> None:
        """A failing check reports 503."""

        async def check() -> None:
            msg = "database unreachable"
            raise ConnectionError(msg)

        client = falcon.testing.TestClient(
            create_app(AppDependencies(readiness_check=check))
        )

        result = client.simulate_get("/ready")

        assert result.status == falcon.HTTP_503
        assert result.json == {"status": "unavailable"}
