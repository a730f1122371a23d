"""Falcon error handlers for webhook failures.

Every handler answers with a JSON body of the form ``{"error": <message>}``.
Delivery failures add the upstream ``status``. Anything not otherwise
handled becomes a logged 500 with a generic message so internal details
never leak to callers.

Usage
-----
Register all handlers on the Falcon app::

    from ghrelay.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from ghrelay.logging import get_logger, log_exception
from ghrelay.webhook.errors import (
    DeliveryError,
    DestinationNotFoundError,
    MissingHeaderError,
    PayloadValidationError,
    SignatureError,
)

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = [
    "INTERNAL_ERROR_MESSAGE",
    "handle_delivery_error",
    "handle_destination_not_found",
    "handle_missing_header",
    "handle_payload_validation",
    "handle_signature_error",
    "handle_unexpected_error",
    "register_error_handlers",
]

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error"


async def handle_missing_header(
    _req: Request,
    resp: Response,
    ex: MissingHeaderError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``MissingHeaderError`` to an HTTP 400 JSON response."""
    resp.status = falcon.HTTP_400
    resp.media = {"error": str(ex)}


async def handle_payload_validation(
    _req: Request,
    resp: Response,
    ex: PayloadValidationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``PayloadValidationError`` to an HTTP 400 JSON response.

    The body carries a fixed message; the detailed reason is logged by the
    pipeline rather than echoed to the sender.
    """
    del ex
    resp.status = falcon.HTTP_400
    resp.media = {"error": "Invalid payload"}


async def handle_signature_error(
    _req: Request,
    resp: Response,
    ex: SignatureError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``SignatureError`` to an HTTP 401 JSON response."""
    resp.status = falcon.HTTP_401
    resp.media = {"error": str(ex)}


async def handle_destination_not_found(
    _req: Request,
    resp: Response,
    ex: DestinationNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``DestinationNotFoundError`` to an HTTP 404 JSON response."""
    resp.status = falcon.HTTP_404
    resp.media = {"error": str(ex)}


async def handle_delivery_error(
    _req: Request,
    resp: Response,
    ex: DeliveryError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``DeliveryError`` to an HTTP 502 JSON response.

    ``status`` is the notification endpoint's HTTP status, or ``null`` when
    the endpoint could not be reached.
    """
    resp.status = falcon.HTTP_502
    resp.media = {"error": str(ex), "status": ex.status_code}


async def handle_unexpected_error(
    req: Request,
    resp: Response,
    ex: Exception,
    _params: dict[str, typ.Any],
) -> None:
    """Log ``ex`` and answer with a generic HTTP 500 JSON response.

    Falcon's own ``HTTPError`` and ``HTTPStatus`` responses are more specific
    matches and keep their default handling.
    """
    log_exception(logger, f"Unhandled error serving {req.method} {req.path}", ex)
    resp.status = falcon.HTTP_500
    resp.media = {"error": INTERNAL_ERROR_MESSAGE}


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Install every webhook error handler on ``app``."""
    app.add_error_handler(Exception, handle_unexpected_error)
    app.add_error_handler(MissingHeaderError, handle_missing_header)
    app.add_error_handler(PayloadValidationError, handle_payload_validation)
    app.add_error_handler(SignatureError, handle_signature_error)
    app.add_error_handler(DestinationNotFoundError, handle_destination_not_found)
    app.add_error_handler(DeliveryError, handle_delivery_error)
