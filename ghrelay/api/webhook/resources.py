"""GitHub webhook receiver resource.

Handles ``POST /webhook/github/{destination_id}``. The resource only reads
the transport details (headers and raw body) and hands them to the
pipeline; failures surface as exceptions mapped by
:mod:`ghrelay.api.errors`.
"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from ghrelay.webhook.pipeline import WebhookPipeline

__all__ = ["EVENT_HEADER", "SIGNATURE_HEADER", "GitHubWebhookResource"]

EVENT_HEADER = "X-GitHub-Event"
SIGNATURE_HEADER = "X-Hub-Signature-256"


class GitHubWebhookResource:
    """Receive signed GitHub deliveries for one destination per URL."""

    def __init__(self, pipeline: WebhookPipeline) -> None:
        """Configure the resource with the processing pipeline."""
        self._pipeline = pipeline

    async def on_post(
        self,
        req: Request,
        resp: Response,
        *,
        destination_id: str,
    ) -> None:
        """Relay one GitHub delivery.

        Parameters
        ----------
        req
            Falcon request carrying the GitHub headers and signed body.
        resp
            Falcon response populated with the sent or ignored marker.
        destination_id
            Destination identifier from the URL path.

        """
        raw_body = await req.stream.read()
        outcome = await self._pipeline.process(
            destination_id,
            event_type=req.get_header(EVENT_HEADER),
            raw_body=raw_body,
            signature=req.get_header(SIGNATURE_HEADER),
        )
        resp.media = outcome.to_media()
        resp.status = falcon.HTTP_200
