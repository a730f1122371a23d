"""Translate validated webhook variants into Discord notifications.

:func:`map_event` is pure: the same variant and ``received_at`` always yield
an equal :class:`MappedEvent`. Timestamps come from the payload itself, and
``received_at`` is only used when the payload omits the relevant one.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ghrelay.events.keys import EventKey
from ghrelay.events.notification import (
    EmbedAuthor,
    EmbedColour,
    EmbedField,
    EmbedFooter,
    Notification,
)
from ghrelay.events.payloads import (
    PullRequestClosed,
    PullRequestConvertedToDraft,
    PullRequestOpened,
    PullRequestReadyForReview,
    ReviewSubmitted,
)
from ghrelay.events.sanitize import (
    DESCRIPTION_LIMIT,
    FIELD_VALUE_LIMIT,
    PR_PLACEHOLDER,
    REVIEW_PLACEHOLDER,
    TITLE_LIMIT,
    sanitize_markdown,
    truncate,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from ghrelay.events.payloads import (
        EventVariant,
        GitHubUser,
        PullRequest,
        RepositoryRef,
        ReviewState,
    )

_SHORT_SHA_LENGTH = 7

_REVIEW_PRESENTATION: typ.Final[
    dict[ReviewState, tuple[EventKey, str, EmbedColour]]
] = {
    "approved": (EventKey.REVIEW_APPROVED, "Approved", EmbedColour.GREEN),
    "changes_requested": (
        EventKey.REVIEW_CHANGES_REQUESTED,
        "Changes Requested",
        EmbedColour.AMBER,
    ),
    "commented": (EventKey.REVIEW_COMMENTED, "Commented", EmbedColour.GRAY),
}


@dc.dataclass(frozen=True, slots=True)
class MappedEvent:
    """A notification plus the routing facts the pipeline needs.

    Attributes
    ----------
    event_key
        Logical event kind, used to look up mention preferences.
    notification
        The Discord embed to deliver.
    mention_login
        GitHub login of the person the notification concerns, or ``None``
        when nobody should be considered for a mention.

    """

    event_key: EventKey
    notification: Notification
    mention_login: str | None


def _author(user: GitHubUser) -> EmbedAuthor:
    return EmbedAuthor(name=user.login, url=user.profile_url, icon_url=user.avatar_url)


def _field(name: str, value: str, *, inline: bool = False) -> EmbedField:
    return EmbedField(
        name=name, value=truncate(value, FIELD_VALUE_LIMIT), inline=inline
    )


def _pr_notification(  # noqa: PLR0913 - one argument per embed slot
    repository: RepositoryRef,
    pr: PullRequest,
    *,
    headline: str,
    colour: EmbedColour,
    timestamp: dt.datetime,
    extra_fields: tuple[EmbedField, ...] = (),
) -> Notification:
    title = f"[{repository.name}]: {headline}: {pr.title}"
    return Notification(
        title=truncate(title, TITLE_LIMIT),
        description=truncate(
            sanitize_markdown(pr.body, PR_PLACEHOLDER), DESCRIPTION_LIMIT
        ),
        url=pr.html_url,
        color=int(colour),
        footer=EmbedFooter(text=str(repository.full_name)),
        timestamp=timestamp,
        author=_author(pr.user),
        fields=(_field("Author", pr.user.login), *extra_fields),
    )


def _map_opened(event: PullRequestOpened, received_at: dt.datetime) -> MappedEvent:
    pr = event.pull_request
    if pr.draft:
        headline, colour = f"Draft PR #{pr.number} Opened", EmbedColour.GRAY
    else:
        headline, colour = f"PR #{pr.number} Opened", EmbedColour.GREEN
    notification = _pr_notification(
        event.repository,
        pr,
        headline=headline,
        colour=colour,
        timestamp=pr.created_at or received_at,
    )
    return MappedEvent(EventKey.PR_OPENED, notification, pr.user.login)


def _map_closed(event: PullRequestClosed, received_at: dt.datetime) -> MappedEvent:
    pr = event.pull_request
    extra: tuple[EmbedField, ...] = ()
    if pr.merged:
        key, verb, colour = EventKey.PR_MERGED, "Merged", EmbedColour.PURPLE
        if pr.merge_commit_sha:
            merged_by = pr.merged_by.login if pr.merged_by else "unknown"
            extra = (
                _field("Merged By", merged_by, inline=True),
                _field(
                    "Merge Commit",
                    pr.merge_commit_sha[:_SHORT_SHA_LENGTH],
                    inline=True,
                ),
            )
    else:
        key, verb, colour = EventKey.PR_CLOSED, "Closed", EmbedColour.RED
    notification = _pr_notification(
        event.repository,
        pr,
        headline=f"PR #{pr.number} {verb}",
        colour=colour,
        timestamp=pr.closed_at or received_at,
        extra_fields=extra,
    )
    return MappedEvent(key, notification, pr.user.login)


def _map_converted_to_draft(
    event: PullRequestConvertedToDraft, received_at: dt.datetime
) -> MappedEvent:
    pr = event.pull_request
    notification = _pr_notification(
        event.repository,
        pr,
        headline=f"PR #{pr.number} Converted to Draft",
        colour=EmbedColour.GRAY,
        timestamp=pr.updated_at or received_at,
    )
    return MappedEvent(EventKey.PR_CONVERTED_TO_DRAFT, notification, pr.user.login)


def _map_ready_for_review(
    event: PullRequestReadyForReview, received_at: dt.datetime
) -> MappedEvent:
    pr = event.pull_request
    notification = _pr_notification(
        event.repository,
        pr,
        headline=f"PR #{pr.number} Ready for Review",
        colour=EmbedColour.GREEN,
        timestamp=pr.updated_at or received_at,
    )
    return MappedEvent(EventKey.PR_READY_FOR_REVIEW, notification, pr.user.login)


def _map_review(event: ReviewSubmitted, received_at: dt.datetime) -> MappedEvent:
    review = event.review
    pr = event.pull_request
    key, label, colour = _REVIEW_PRESENTATION[review.state]
    title = f"[{event.repository.name}]: PR #{pr.number} Review: {label}"
    notification = Notification(
        title=truncate(title, TITLE_LIMIT),
        description=truncate(
            sanitize_markdown(review.body, REVIEW_PLACEHOLDER), DESCRIPTION_LIMIT
        ),
        url=review.html_url,
        color=int(colour),
        footer=EmbedFooter(text=str(event.repository.full_name)),
        timestamp=review.submitted_at or received_at,
        author=_author(review.user),
        fields=(
            _field("PR Title", pr.title),
            _field("Reviewer", review.user.login, inline=True),
            _field("PR Author", pr.user.login, inline=True),
        ),
    )
    # The review concerns the pull request's author, not the reviewer.
    return MappedEvent(key, notification, pr.user.login)


def map_event(variant: EventVariant, *, received_at: dt.datetime) -> MappedEvent:
    """Build the notification for a validated event variant.

    Parameters
    ----------
    variant
        A decoded variant from :mod:`ghrelay.events.payloads`.
    received_at
        Fallback timestamp used when the payload carries none for the event.

    Returns
    -------
    MappedEvent
        Event key, notification document and mention candidate.

    """
    match variant:
        case PullRequestOpened():
            return _map_opened(variant, received_at)
        case PullRequestClosed():
            return _map_closed(variant, received_at)
        case PullRequestConvertedToDraft():
            return _map_converted_to_draft(variant, received_at)
        case PullRequestReadyForReview():
            return _map_ready_for_review(variant, received_at)
        case ReviewSubmitted():
            return _map_review(variant, received_at)
    typ.assert_never(variant)


__all__ = ["MappedEvent", "map_event"]
