"""Best-effort resolution of the Discord mention for a notification.

A mention is produced only when the destination's preference for the event
key is enabled *and* the GitHub login has a linked Discord identity. Lookup
failures are returned as a value rather than raised; callers match on the
result and carry on without a mention.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ghrelay.events.keys import DEFAULT_MENTION_PREFERENCES

if typ.TYPE_CHECKING:
    from ghrelay.events.keys import EventKey
    from ghrelay.storage.protocols import MentionIdentityStore, MentionPreferenceStore


@dc.dataclass(frozen=True, slots=True)
class MentionFound:
    """A Discord mention token ready to use as message content."""

    text: str


@dc.dataclass(frozen=True, slots=True)
class NoMention:
    """Nobody should be mentioned."""


@dc.dataclass(frozen=True, slots=True)
class MentionLookupFailed:
    """The preference or identity lookup raised."""

    error: Exception


type MentionResult = MentionFound | NoMention | MentionLookupFailed


def format_mention(target_handle: str) -> str:
    """Return the Discord user mention token for ``target_handle``."""
    return f"<@{target_handle}>"


class MentionResolver:
    """Decide whether, and whom, to mention for a mapped event."""

    def __init__(
        self,
        preferences: MentionPreferenceStore,
        identities: MentionIdentityStore,
    ) -> None:
        """Read preferences and identities through the given stores."""
        self._preferences = preferences
        self._identities = identities

    async def resolve(
        self,
        destination_id: str,
        event_key: EventKey,
        source_username: str,
    ) -> MentionResult:
        """Resolve the mention for ``source_username`` on ``event_key``."""
        try:
            preferences = await self._preferences.get_for_destination(destination_id)
            enabled = preferences.get(
                event_key, DEFAULT_MENTION_PREFERENCES[event_key]
            )
            if not enabled:
                return NoMention()
            identity = await self._identities.get_by_source_username(
                destination_id, source_username
            )
        except Exception as exc:  # noqa: BLE001 - mention lookup must not fail delivery
            return MentionLookupFailed(exc)

        if identity is None:
            return NoMention()
        return MentionFound(format_mention(identity.target_handle))


__all__ = [
    "MentionFound",
    "MentionLookupFailed",
    "MentionResolver",
    "MentionResult",
    "NoMention",
    "format_mention",
]
