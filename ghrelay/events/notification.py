"""Discord embed documents produced by the event mapper."""

from __future__ import annotations

import datetime as dt  # noqa: TC003 - msgspec resolves annotations at runtime
import enum
import typing as typ

import msgspec


class EmbedColour(enum.IntEnum):
    """Sidebar colours, matching GitHub's own pull request palette."""

    GREEN = 0x238636
    GRAY = 0x6E7681
    RED = 0xCB2431
    PURPLE = 0x8957E5
    AMBER = 0xD29922


class EmbedAuthor(msgspec.Struct, kw_only=True, frozen=True, omit_defaults=True):
    """Author block shown above the embed title."""

    name: str
    url: str | None = None
    icon_url: str | None = None


class EmbedFooter(msgspec.Struct, kw_only=True, frozen=True, omit_defaults=True):
    """Footer line, used for the repository's full name."""

    text: str


class EmbedField(msgspec.Struct, kw_only=True, frozen=True):
    """A name/value pair rendered below the description."""

    name: str
    value: str
    inline: bool = False


class Notification(msgspec.Struct, kw_only=True, frozen=True, omit_defaults=True):
    """A single Discord embed."""

    title: str
    description: str
    color: int
    footer: EmbedFooter
    timestamp: dt.datetime
    author: EmbedAuthor
    url: str | None = None
    fields: tuple[EmbedField, ...] = ()

    def to_embed(self) -> dict[str, typ.Any]:
        """Return the JSON-ready embed mapping."""
        return typ.cast("dict[str, typ.Any]", msgspec.to_builtins(self))


__all__ = [
    "EmbedAuthor",
    "EmbedColour",
    "EmbedField",
    "EmbedFooter",
    "Notification",
]
