"""Webhook processing pipeline.

A delivery moves through these states::

    RECEIVED -> VERIFIED -> PARSED -> MAPPED | UNHANDLED
             -> MENTION_RESOLVED -> DISPATCHED -> RESPONDED

Authentication always completes before the body is interpreted. Rejections
and delivery failures are raised as :mod:`ghrelay.webhook.errors`
exceptions; unhandled events and successful deliveries are returned as
outcome values.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ghrelay.common.time import utcnow
from ghrelay.events.mapping import map_event
from ghrelay.events.validation import (
    InvalidPayload,
    ParsedEvent,
    UnhandledEvent,
    validate_payload,
)
from ghrelay.webhook.errors import (
    DeliveryError,
    DestinationNotFoundError,
    MissingHeaderError,
    PayloadValidationError,
    SignatureError,
)
from ghrelay.webhook.mentions import MentionFound, MentionLookupFailed, NoMention
from ghrelay.webhook.observability import WebhookEventLogger
from ghrelay.webhook.signature import VerificationStatus

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from ghrelay.events.mapping import MappedEvent
    from ghrelay.storage.protocols import DestinationRecord
    from ghrelay.webhook.dispatch import NotificationDispatcher
    from ghrelay.webhook.mentions import MentionResolver
    from ghrelay.webhook.signature import SignatureVerifier

_HTTP_BAD_REQUEST = 400
_HTTP_UNAUTHORIZED = 401
_HTTP_NOT_FOUND = 404


@dc.dataclass(frozen=True, slots=True)
class SentOutcome:
    """The notification was delivered."""

    event_type: str
    action: str
    repo: str
    pinged: bool

    def to_media(self) -> dict[str, object]:
        """Return the JSON response body."""
        return {
            "sent": True,
            "event": self.event_type,
            "action": self.action,
            "repo": self.repo,
            "pinged": self.pinged,
        }


@dc.dataclass(frozen=True, slots=True)
class IgnoredOutcome:
    """The delivery was authenticated but is not relayed."""

    reason: str

    def to_media(self) -> dict[str, object]:
        """Return the JSON response body."""
        return {"ignored": True, "reason": self.reason}


type PipelineOutcome = SentOutcome | IgnoredOutcome


class WebhookPipeline:
    """Verify, parse, map, resolve mentions for and dispatch one delivery.

    Parameters
    ----------
    verifier
        Signature verifier bound to the destination store.
    mentions
        Mention resolver bound to the preference and identity stores.
    dispatcher
        Notification dispatcher used for the single outbound POST.
    event_logger
        Structured event logger; a default instance is created when omitted.
    clock
        Source of the fallback notification timestamp.

    """

    def __init__(
        self,
        *,
        verifier: SignatureVerifier,
        mentions: MentionResolver,
        dispatcher: NotificationDispatcher,
        event_logger: WebhookEventLogger | None = None,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
    ) -> None:
        """Wire the pipeline stages together."""
        self._verifier = verifier
        self._mentions = mentions
        self._dispatcher = dispatcher
        self._events = event_logger or WebhookEventLogger()
        self._clock = clock

    async def process(
        self,
        destination_id: str,
        *,
        event_type: str | None,
        raw_body: bytes,
        signature: str | None,
    ) -> PipelineOutcome:
        """Run one delivery through the pipeline.

        Parameters
        ----------
        destination_id
            Destination identifier from the request path.
        event_type
            ``X-GitHub-Event`` header value.
        raw_body
            Exact request body bytes.
        signature
            ``X-Hub-Signature-256`` header value.

        Returns
        -------
        SentOutcome | IgnoredOutcome
            ``SentOutcome`` after a successful delivery, ``IgnoredOutcome``
            for unsupported event types and actions.

        Raises
        ------
        MissingHeaderError
            When ``event_type`` is absent; checked before any lookup.
        DestinationNotFoundError
            When ``destination_id`` names no destination.
        SignatureError
            When the signature is missing or does not match.
        PayloadValidationError
            When the body does not match the event schema.
        DeliveryError
            When the notification endpoint rejects the message or cannot be
            reached.

        """
        if not event_type:
            self._reject(
                destination_id, None, _HTTP_BAD_REQUEST, "missing event header"
            )
            raise MissingHeaderError.event_type()

        self._events.log_received(destination_id=destination_id, event_type=event_type)
        destination = await self._authenticate(
            destination_id, event_type, raw_body, signature
        )

        match validate_payload(event_type, raw_body):
            case UnhandledEvent(reason=reason):
                self._events.log_ignored(
                    destination_id=destination_id, event_type=event_type, reason=reason
                )
                return IgnoredOutcome(reason)
            case InvalidPayload(reason=reason):
                self._reject(destination_id, event_type, _HTTP_BAD_REQUEST, reason)
                raise PayloadValidationError(reason)
            case ParsedEvent() as parsed:
                mapped = map_event(parsed.variant, received_at=self._clock())
                return await self._deliver(destination, parsed, mapped)

    async def _authenticate(
        self,
        destination_id: str,
        event_type: str,
        raw_body: bytes,
        signature: str | None,
    ) -> DestinationRecord:
        result = await self._verifier.verify(destination_id, raw_body, signature)
        match result.status:
            case VerificationStatus.NOT_FOUND:
                self._reject(destination_id, event_type, _HTTP_NOT_FOUND, "not found")
                raise DestinationNotFoundError(destination_id)
            case VerificationStatus.MISSING_SIGNATURE:
                self._reject(
                    destination_id, event_type, _HTTP_UNAUTHORIZED, "missing signature"
                )
                raise SignatureError.missing()
            case VerificationStatus.INVALID_SIGNATURE:
                self._reject(
                    destination_id, event_type, _HTTP_UNAUTHORIZED, "invalid signature"
                )
                raise SignatureError.invalid()
        return typ.cast("DestinationRecord", result.destination)

    async def _resolve_mention(
        self, destination: DestinationRecord, mapped: MappedEvent
    ) -> str | None:
        if mapped.mention_login is None:
            return None
        result = await self._mentions.resolve(
            destination.id, mapped.event_key, mapped.mention_login
        )
        match result:
            case MentionFound(text=text):
                return text
            case NoMention():
                return None
            case MentionLookupFailed(error=error):
                self._events.log_mention_failed(
                    destination_id=destination.id,
                    event_key=mapped.event_key,
                    error=error,
                )
                return None

    async def _deliver(
        self,
        destination: DestinationRecord,
        parsed: ParsedEvent,
        mapped: MappedEvent,
    ) -> SentOutcome:
        mention = await self._resolve_mention(destination, mapped)
        result = await self._dispatcher.dispatch(
            destination.notification_url, mapped.notification, mention
        )
        if not result.ok:
            self._events.log_delivery_failed(
                destination_id=destination.id,
                event_type=parsed.event_type,
                action=parsed.action,
                repo=destination.repo,
                status_code=result.status_code,
                error=result.error,
            )
            raise DeliveryError(status_code=result.status_code, detail=result.error)

        self._events.log_delivered(
            destination_id=destination.id,
            event_type=parsed.event_type,
            action=parsed.action,
            repo=destination.repo,
            status_code=result.status_code,
            pinged=mention is not None,
        )
        return SentOutcome(
            event_type=parsed.event_type,
            action=parsed.action,
            repo=destination.repo,
            pinged=mention is not None,
        )

    def _reject(
        self,
        destination_id: str,
        event_type: str | None,
        status: int,
        reason: str,
    ) -> None:
        self._events.log_rejected(
            destination_id=destination_id,
            event_type=event_type,
            status=status,
            reason=reason,
        )


__all__ = ["IgnoredOutcome", "PipelineOutcome", "SentOutcome", "WebhookPipeline"]
