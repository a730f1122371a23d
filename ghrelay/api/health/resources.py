"""Liveness and readiness probes.

``/health`` answers as long as the process is serving requests. ``/ready``
optionally runs a readiness check, typically a database ping, and reports
503 until it succeeds.

Usage
-----
Register the probes on the Falcon app::

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(check=database_ping))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from ghrelay.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadinessCheck", "ReadyResource"]

logger = get_logger(__name__)

type ReadinessCheck = cabc.Callable[[], cabc.Awaitable[None]]


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe resource returning ``{"status": "ready"}``.

    Parameters
    ----------
    check
        Optional coroutine function that raises when a dependency is
        unavailable. Without one the service is always ready.

    """

    def __init__(self, check: ReadinessCheck | None = None) -> None:
        """Configure the probe with an optional readiness check."""
        self._check = check

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        if self._check is not None:
            try:
                await self._check()
            except Exception as exc:  # noqa: BLE001 - any failure means not ready
                log_warning(
                    logger,
                    "Readiness check failed: %s: %s",
                    type(exc).__name__,
                    exc,
                )
                resp.media = {"status": "unavailable"}
                resp.status = HTTPStatus.SERVICE_UNAVAILABLE
                return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
