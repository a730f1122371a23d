"""Classify raw webhook bodies into parsed, unhandled or invalid outcomes.

Validation is two-stage. The body is first decoded without a schema to read
its ``action`` envelope; actions outside a category's table are reported as
unhandled without looking at any other field. Recognised actions are then
converted into the category's tagged union, and any schema mismatch is
reported as invalid.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import msgspec

from ghrelay.events.payloads import PullRequestVariant, ReviewVariant

if typ.TYPE_CHECKING:
    from ghrelay.events.payloads import EventVariant

MALFORMED_JSON = "malformed json"
NOT_AN_OBJECT = "payload must be a JSON object"
MISSING_ACTION = "payload is missing a string 'action'"


@dc.dataclass(frozen=True, slots=True)
class ParsedEvent:
    """A body that decoded into a supported variant."""

    event_type: str
    action: str
    variant: EventVariant


@dc.dataclass(frozen=True, slots=True)
class UnhandledEvent:
    """A well-formed delivery this service deliberately does not relay."""

    reason: str


@dc.dataclass(frozen=True, slots=True)
class InvalidPayload:
    """A body that does not match the declared shape for its event."""

    reason: str


type ValidationOutcome = ParsedEvent | UnhandledEvent | InvalidPayload


@dc.dataclass(frozen=True, slots=True)
class _EventCategory:
    handled: frozenset[str]
    ignored: frozenset[str]
    variant_type: object


_CATEGORIES: typ.Final[dict[str, _EventCategory]] = {
    "pull_request": _EventCategory(
        handled=frozenset(
            {"opened", "closed", "converted_to_draft", "ready_for_review"}
        ),
        ignored=frozenset({"synchronize", "edited"}),
        variant_type=PullRequestVariant,
    ),
    "pull_request_review": _EventCategory(
        handled=frozenset({"submitted"}),
        ignored=frozenset(),
        variant_type=ReviewVariant,
    ),
}

SUPPORTED_EVENT_TYPES: typ.Final[frozenset[str]] = frozenset(_CATEGORIES)


def _unhandled(event_type: str, action: str | None = None) -> UnhandledEvent:
    label = event_type if action is None else f"{event_type}:{action}"
    return UnhandledEvent(f"Event type '{label}' not handled")


def validate_payload(event_type: str, raw_body: bytes) -> ValidationOutcome:
    """Validate ``raw_body`` as a delivery of ``event_type``.

    Parameters
    ----------
    event_type
        Value of the ``X-GitHub-Event`` header.
    raw_body
        Exact request body bytes, already authenticated.

    Returns
    -------
    ParsedEvent | UnhandledEvent | InvalidPayload
        Unsupported event types are unhandled without the body being read.
        Recognised-but-ignored and unknown actions are unhandled. Malformed
        JSON, non-object bodies, a missing ``action`` and schema mismatches
        are invalid.

    """
    category = _CATEGORIES.get(event_type)
    if category is None:
        return _unhandled(event_type)

    try:
        document = msgspec.json.decode(raw_body)
    except msgspec.DecodeError:
        return InvalidPayload(MALFORMED_JSON)

    if not isinstance(document, dict):
        return InvalidPayload(NOT_AN_OBJECT)

    action = document.get("action")
    if not isinstance(action, str):
        return InvalidPayload(MISSING_ACTION)

    if action in category.ignored or action not in category.handled:
        return _unhandled(event_type, action)

    try:
        variant = msgspec.convert(document, type=category.variant_type)
    except msgspec.ValidationError as exc:
        return InvalidPayload(str(exc))

    return ParsedEvent(
        event_type=event_type,
        action=action,
        variant=typ.cast("EventVariant", variant),
    )


__all__ = [
    "MALFORMED_JSON",
    "SUPPORTED_EVENT_TYPES",
    "InvalidPayload",
    "ParsedEvent",
    "UnhandledEvent",
    "ValidationOutcome",
    "validate_payload",
]
