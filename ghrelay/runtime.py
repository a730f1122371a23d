"""ghrelay runtime entrypoint.

This module provides the ASGI application factory used by Granian. It
delegates to :func:`ghrelay.api.app.create_app` for application
construction while keeping the ``ghrelay.runtime:create_app`` entrypoint
stable.

When ``GHRELAY_DATABASE_URL`` is set, the runtime wires the stores, the
webhook pipeline and an ``httpx.AsyncClient`` for deliveries, so the app
serves ``POST /webhook/github/{destination_id}``. Otherwise it starts in
health-only mode. See :class:`ghrelay.config.RelayConfig` for every
environment variable read here.

Run the service directly with ``python -m ghrelay.runtime``.
"""

from __future__ import annotations

import typing as typ

from ghrelay.config import RelayConfig
from ghrelay.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi
    from sqlalchemy.ext.asyncio import AsyncEngine

    from ghrelay.webhook.dispatch import NotificationDispatcher

__all__ = ["create_app", "load_config", "main"]

logger = get_logger(__name__)


def load_config() -> RelayConfig:
    """Load :class:`RelayConfig`, exiting on invalid values.

    Raises
    ------
    SystemExit
        If any environment variable fails validation.

    """
    try:
        return RelayConfig.from_env()
    except ValueError as exc:
        # Validation failures need no traceback.
        log_error(logger, "Invalid ghrelay configuration: %s", exc)
        raise SystemExit(1) from exc


class _ResourceCloser:
    """Falcon lifespan middleware releasing pooled connections on shutdown."""

    def __init__(self, engine: AsyncEngine, dispatcher: NotificationDispatcher) -> None:
        self._engine = engine
        self._dispatcher = dispatcher

    async def process_shutdown(self, _scope: object, _event: object) -> None:
        """Close the delivery client and dispose of the engine."""
        await self._dispatcher.aclose()
        await self._engine.dispose()


def _build_database_app(config: RelayConfig, database_url: str) -> falcon.asgi.App:
    from sqlalchemy import text
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from ghrelay.api.app import AppDependencies
    from ghrelay.api.app import create_app as _create_api_app
    from ghrelay.storage.stores import (
        SqlDestinationStore,
        SqlMentionIdentityStore,
        SqlMentionPreferenceStore,
    )
    from ghrelay.webhook.dispatch import NotificationDispatcher
    from ghrelay.webhook.mentions import MentionResolver
    from ghrelay.webhook.pipeline import WebhookPipeline
    from ghrelay.webhook.signature import SignatureVerifier

    engine = create_async_engine(database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    dispatcher = NotificationDispatcher(timeout_s=config.delivery_timeout_s)
    pipeline = WebhookPipeline(
        verifier=SignatureVerifier(SqlDestinationStore(session_factory)),
        mentions=MentionResolver(
            SqlMentionPreferenceStore(session_factory),
            SqlMentionIdentityStore(session_factory),
        ),
        dispatcher=dispatcher,
    )

    async def ping_database() -> None:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    app = _create_api_app(
        AppDependencies(pipeline=pipeline, readiness_check=ping_database)
    )
    app.add_middleware(_ResourceCloser(engine, dispatcher))
    return app


def create_app() -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    When ``GHRELAY_DATABASE_URL`` is set, builds the webhook pipeline so the
    app includes the GitHub webhook receiver. Otherwise only ``/health`` and
    ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    from ghrelay.api.app import create_app as _create_api_app

    config = load_config()
    if config.database_url is None:
        return _create_api_app()
    return _build_database_app(config, config.database_url)


def main() -> None:
    """Start the ghrelay server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    config = load_config()

    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid GHRELAY_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting ghrelay on %s:%d (log_level=%s, webhooks=%s)",
        config.host,
        config.port,
        normalized_level,
        "enabled" if config.database_url else "disabled",
    )

    server = Granian(
        "ghrelay.runtime:create_app",
        address=config.host,
        port=config.port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
