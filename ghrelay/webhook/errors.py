"""Terminal failure states of webhook processing.

Each exception corresponds to one rejected or failed delivery and is mapped
to an HTTP response by the handlers in :mod:`ghrelay.api.errors`. Messages
never include the destination secret or the supplied signature.
"""

from __future__ import annotations


class WebhookError(Exception):
    """Base class for failures that end webhook processing."""


class MissingHeaderError(WebhookError):
    """Raised when a required request header is absent."""

    def __init__(self, header: str) -> None:
        """Record the missing header name."""
        self.header = header
        super().__init__(f"Missing {header} header")

    @classmethod
    def event_type(cls) -> MissingHeaderError:
        """Return an error for a delivery without ``X-GitHub-Event``."""
        return cls("X-GitHub-Event")


class DestinationNotFoundError(WebhookError):
    """Raised when the path names no known destination."""

    def __init__(self, destination_id: str) -> None:
        """Record the unknown destination identifier."""
        self.destination_id = destination_id
        super().__init__("Webhook not found")


class SignatureError(WebhookError):
    """Raised when a delivery cannot be authenticated."""

    @classmethod
    def missing(cls) -> SignatureError:
        """Return an error for a delivery without a signature header."""
        return cls("Missing X-Hub-Signature-256 header")

    @classmethod
    def invalid(cls) -> SignatureError:
        """Return an error for a signature that does not match the body."""
        return cls("Invalid signature")


class PayloadValidationError(WebhookError):
    """Raised when an authenticated body does not match its event schema."""

    def __init__(self, reason: str) -> None:
        """Record the validation failure reason."""
        self.reason = reason
        super().__init__(reason)


class DeliveryError(WebhookError):
    """Raised when the notification endpoint did not accept the message.

    Attributes
    ----------
    status_code
        HTTP status returned by the endpoint, or ``None`` when no response
        was received.
    detail
        Transport error description for network failures.

    """

    def __init__(
        self, *, status_code: int | None = None, detail: str | None = None
    ) -> None:
        """Record the upstream status and optional transport detail."""
        self.status_code = status_code
        self.detail = detail
        super().__init__("Failed to send Discord notification")


__all__ = [
    "DeliveryError",
    "DestinationNotFoundError",
    "MissingHeaderError",
    "PayloadValidationError",
    "SignatureError",
    "WebhookError",
]
