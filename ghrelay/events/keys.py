"""Logical event keys and their default mention preferences."""

from __future__ import annotations

import enum
import types


class EventKey(enum.StrEnum):
    """Closed set of notification kinds a destination can opt into mentions for."""

    PR_OPENED = "pr_opened"
    PR_CLOSED = "pr_closed"
    PR_MERGED = "pr_merged"
    PR_CONVERTED_TO_DRAFT = "pr_converted_to_draft"
    PR_READY_FOR_REVIEW = "pr_ready_for_review"
    REVIEW_APPROVED = "review_approved"
    REVIEW_CHANGES_REQUESTED = "review_changes_requested"
    REVIEW_COMMENTED = "review_commented"


# Reviews that need the PR author to act mention by default; everything else
# stays quiet until a destination owner opts in.
DEFAULT_MENTION_PREFERENCES: types.MappingProxyType[EventKey, bool] = (
    types.MappingProxyType(
        {
            EventKey.PR_OPENED: False,
            EventKey.PR_CLOSED: False,
            EventKey.PR_MERGED: False,
            EventKey.PR_CONVERTED_TO_DRAFT: False,
            EventKey.PR_READY_FOR_REVIEW: False,
            EventKey.REVIEW_APPROVED: True,
            EventKey.REVIEW_CHANGES_REQUESTED: True,
            EventKey.REVIEW_COMMENTED: False,
        }
    )
)


def parse_event_key(value: str) -> EventKey | None:
    """Return the :class:`EventKey` named by ``value``, or ``None``."""
    try:
        return EventKey(value)
    except ValueError:
        return None


__all__ = ["DEFAULT_MENTION_PREFERENCES", "EventKey", "parse_event_key"]
