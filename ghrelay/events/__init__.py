"""GitHub event schemas, validation and notification mapping."""

from __future__ import annotations

from .keys import DEFAULT_MENTION_PREFERENCES, EventKey, parse_event_key
from .mapping import MappedEvent, map_event
from .notification import (
    EmbedAuthor,
    EmbedColour,
    EmbedField,
    EmbedFooter,
    Notification,
)
from .validation import (
    SUPPORTED_EVENT_TYPES,
    InvalidPayload,
    ParsedEvent,
    UnhandledEvent,
    ValidationOutcome,
    validate_payload,
)

__all__ = [
    "DEFAULT_MENTION_PREFERENCES",
    "SUPPORTED_EVENT_TYPES",
    "EmbedAuthor",
    "EmbedColour",
    "EmbedField",
    "EmbedFooter",
    "EventKey",
    "InvalidPayload",
    "MappedEvent",
    "Notification",
    "ParsedEvent",
    "UnhandledEvent",
    "ValidationOutcome",
    "map_event",
    "parse_event_key",
    "validate_payload",
]
