"""Structured log events for webhook processing.

Every event is a single femtologging line tagged ``[webhook.*]`` followed by
``key=value`` pairs. Records identify deliveries by destination id, event
type, action and repository; signing secrets and signature values are never
passed to this module.

Usage
-----
>>> event_logger = WebhookEventLogger()
>>> event_logger.log_received(destination_id="d3b0...", event_type="pull_request")

"""

from __future__ import annotations

import enum
import typing as typ

import httpx
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from ghrelay.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from ghrelay.events.keys import EventKey

logger = get_logger(__name__)


class WebhookEventType(enum.StrEnum):
    """Structured log event types for webhook processing."""

    RECEIVED = "webhook.received"
    REJECTED = "webhook.rejected"
    IGNORED = "webhook.ignored"
    DELIVERED = "webhook.delivered"
    DELIVERY_FAILED = "webhook.delivery_failed"
    MENTION_FAILED = "webhook.mention_failed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (httpx.TransportError, ErrorCategory.TRANSIENT),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes."""
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.UNKNOWN


class WebhookEventLogger:
    """Emit structured webhook events via femtologging."""

    def log_received(self, *, destination_id: str, event_type: str) -> None:
        """Log an incoming delivery before authentication."""
        log_info(
            logger,
            "[%s] destination_id=%s event_type=%s",
            WebhookEventType.RECEIVED,
            destination_id,
            event_type,
        )

    def log_rejected(
        self,
        *,
        destination_id: str,
        event_type: str | None,
        status: int,
        reason: str,
    ) -> None:
        """Log a delivery rejected before mapping.

        Parameters
        ----------
        destination_id
            Destination identifier from the request path.
        event_type
            ``X-GitHub-Event`` value, or ``None`` when it was missing.
        status
            HTTP status the caller will receive.
        reason
            Rejection reason. Must not contain secrets or signatures.

        """
        log_warning(
            logger,
            "[%s] destination_id=%s event_type=%s status=%d reason=%s",
            WebhookEventType.REJECTED,
            destination_id,
            event_type,
            status,
            reason,
        )

    def log_ignored(
        self, *, destination_id: str, event_type: str, reason: str
    ) -> None:
        """Log an authenticated delivery that is deliberately not relayed."""
        log_info(
            logger,
            "[%s] destination_id=%s event_type=%s reason=%s",
            WebhookEventType.IGNORED,
            destination_id,
            event_type,
            reason,
        )

    def log_delivered(  # noqa: PLR0913
        self,
        *,
        destination_id: str,
        event_type: str,
        action: str,
        repo: str,
        status_code: int | None,
        pinged: bool,
    ) -> None:
        """Log a notification accepted by the endpoint."""
        log_info(
            logger,
            "[%s] destination_id=%s event_type=%s action=%s repo=%s "
            "status_code=%s pinged=%s",
            WebhookEventType.DELIVERED,
            destination_id,
            event_type,
            action,
            repo,
            status_code,
            pinged,
        )

    def log_delivery_failed(  # noqa: PLR0913
        self,
        *,
        destination_id: str,
        event_type: str,
        action: str,
        repo: str,
        status_code: int | None,
        error: str | None,
    ) -> None:
        """Log a notification the endpoint did not accept."""
        log_error(
            logger,
            "[%s] destination_id=%s event_type=%s action=%s repo=%s "
            "status_code=%s error_message=%s",
            WebhookEventType.DELIVERY_FAILED,
            destination_id,
            event_type,
            action,
            repo,
            status_code,
            error,
        )

    def log_mention_failed(
        self,
        *,
        destination_id: str,
        event_key: EventKey,
        error: BaseException,
    ) -> None:
        """Log a mention lookup failure; delivery continues without a mention."""
        log_warning(
            logger,
            "[%s] destination_id=%s event_key=%s error_type=%s "
            "error_category=%s error_message=%s",
            WebhookEventType.MENTION_FAILED,
            destination_id,
            event_key,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )


__all__ = [
    "ErrorCategory",
    "WebhookEventLogger",
    "WebhookEventType",
    "categorize_error",
]
