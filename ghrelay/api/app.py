"""Application factory for the ghrelay Falcon ASGI application.

This module provides ``create_app()`` which builds the Falcon ASGI
application with health endpoints and, when a webhook pipeline is supplied,
the GitHub webhook receiver.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with the webhook receiver::

    from ghrelay.api.app import AppDependencies, create_app

    deps = AppDependencies(pipeline=pipeline, readiness_check=ping_database)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from ghrelay.api.errors import register_error_handlers
from ghrelay.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from ghrelay.api.health.resources import ReadinessCheck
    from ghrelay.webhook.pipeline import WebhookPipeline

__all__ = ["WEBHOOK_ROUTE", "AppDependencies", "create_app"]

WEBHOOK_ROUTE = "/webhook/github/{destination_id}"


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    pipeline
        Webhook pipeline. When ``None`` only health endpoints are registered.
    readiness_check
        Optional coroutine function used by ``/ready``.

    """

    pipeline: WebhookPipeline | None = None
    readiness_check: ReadinessCheck | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None``, or when no pipeline
        is provided, only ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    app = falcon.asgi.App()

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(check=deps.readiness_check))

    if deps.pipeline is not None:
        from ghrelay.api.webhook.resources import GitHubWebhookResource

        app.add_route(WEBHOOK_ROUTE, GitHubWebhookResource(deps.pipeline))

    register_error_handlers(app)
    return app
