"""Unit tests for the ghrelay.runtime module."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon.asgi
import falcon.testing
import pytest

from ghrelay import runtime

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without ghrelay configuration."""
    for name in (
        "GHRELAY_DATABASE_URL",
        "GHRELAY_PORT",
        "GHRELAY_LOG_LEVEL",
        "GHRELAY_DELIVERY_TIMEOUT_S",
    ):
        monkeypatch.delenv(name, raising=False)


class TestHealthOnlyMode:
    """Runtime without a database."""

    def test_create_app_returns_falcon_app(self) -> None:
        """create_app returns a Falcon ASGI App instance."""
        assert isinstance(runtime.create_app(), falcon.asgi.App)

    def test_health_and_ready(self) -> None:
        """Both probes answer as JSON."""
        client = falcon.testing.TestClient(runtime.create_app())

        health = client.simulate_get("/health")
        ready = client.simulate_get("/ready")

        assert health.status_code == HTTPStatus.OK
        assert health.headers.get("content-type", "").startswith("application/json")
        assert ready.json == {"status": "ready"}

    def test_webhook_route_absent(self) -> None:
        """Without a database there is no webhook receiver."""
        client = falcon.testing.TestClient(runtime.create_app())

        result = client.simulate_post("/webhook/github/abc")

        assert result.status_code == HTTPStatus.NOT_FOUND


class TestDatabaseMode:
    """Runtime with GHRELAY_DATABASE_URL set."""

    @pytest.fixture
    def client(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> falcon.testing.TestClient:
        """Return a client for a runtime app backed by a sqlite file."""
        monkeypatch.setenv(
            "GHRELAY_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}"
        )
        return falcon.testing.TestClient(runtime.create_app())

    def test_webhook_route_registered(self, client: falcon.testing.TestClient) -> None:
        """Unknown destinations are 404 from the receiver, not the router."""
        result = client.simulate_post(
            "/webhook/github/not-a-uuid",
            body=b"{}",
            headers={"X-GitHub-Event": "pull_request"},
        )

        assert result.status_code == HTTPStatus.NOT_FOUND
        assert result.json == {"error": "Webhook not found"}

    def test_ready_pings_database(self, client: falcon.testing.TestClient) -> None:
        """The readiness probe succeeds against a reachable database."""
        result = client.simulate_get("/ready")

        assert result.status_code == HTTPStatus.OK
        assert result.json == {"status": "ready"}


class TestLoadConfig:
    """Tests for load_config."""

    def test_invalid_config_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Invalid values terminate with exit status 1."""
        monkeypatch.setenv("GHRELAY_PORT", "not-a-port")

        with pytest.raises(SystemExit) as excinfo:
            runtime.load_config()

        assert excinfo.value.code == 1


class TestMain:
    """Tests for the Granian entrypoint."""

    def test_main_serves_factory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """main() starts Granian on the configured address."""
        calls: dict[str, typ.Any] = {}

        class _FakeGranian:
            def __init__(self, target: str, **kwargs: object) -> None:
                calls["target"] = target
                calls.update(kwargs)

            def serve(self) -> None:
                calls["served"] = True

        monkeypatch.setenv("GHRELAY_PORT", "9100")
        monkeypatch.setattr("granian.Granian", _FakeGranian)
        monkeypatch.setattr(
            runtime, "configure_logging", lambda level: (level.upper(), False)
        )

        runtime.main()

        assert calls["target"] == "ghrelay.runtime:create_app"
        assert calls["port"] == 9100
        assert calls["factory"] is True
        assert calls["served"] is True
