"""Read interfaces the webhook pipeline depends on, plus their record types.

The pipeline only ever reads through these three protocols. Writes are an
operator concern handled by the concrete stores in
:mod:`ghrelay.storage.stores`.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    import datetime as dt

    from ghrelay.events.keys import EventKey


@dc.dataclass(frozen=True, slots=True)
class DestinationRecord:
    """A destination as seen by the pipeline.

    ``secret`` is excluded from ``repr`` so records can be logged safely.
    """

    id: str
    owner_id: str
    repo: str
    notification_url: str
    secret: str = dc.field(repr=False)
    created_at: dt.datetime | None = None


@dc.dataclass(frozen=True, slots=True)
class MentionIdentityRecord:
    """A GitHub login linked to a Discord user on one destination."""

    id: str
    destination_id: str
    source_username: str
    target_handle: str
    linked_owner_id: str | None = None
    created_at: dt.datetime | None = None


@dc.dataclass(frozen=True, slots=True)
class AccountRecord:
    """A destination owner."""

    id: str
    username: str
    created_at: dt.datetime | None = None


@typ.runtime_checkable
class DestinationStore(typ.Protocol):
    """Lookup of destinations by their public identifier."""

    async def get_by_id(self, destination_id: str) -> DestinationRecord | None:
        """Return the destination with ``destination_id``, or ``None``."""
        ...


@typ.runtime_checkable
class MentionPreferenceStore(typ.Protocol):
    """Per-destination mention preferences."""

    async def get_for_destination(self, destination_id: str) -> dict[EventKey, bool]:
        """Return the complete preference map for ``destination_id``.

        Every :class:`~ghrelay.events.keys.EventKey` is present; keys without
        a stored row carry their default.
        """
        ...


@typ.runtime_checkable
class MentionIdentityStore(typ.Protocol):
    """Lookup of Discord identities by GitHub login."""

    async def get_by_source_username(
        self, destination_id: str, source_username: str
    ) -> MentionIdentityRecord | None:
        """Return the identity linked to ``source_username``, or ``None``."""
        ...


__all__ = [
    "AccountRecord",
    "DestinationRecord",
    "DestinationStore",
    "MentionIdentityRecord",
    "MentionIdentityStore",
    "MentionPreferenceStore",
]
