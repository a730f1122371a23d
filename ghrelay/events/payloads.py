"""Typed GitHub webhook payload variants.

Each supported ``(event type, action)`` pair is a msgspec Struct tagged on
the payload's ``action`` field, so decoding a body against one of the union
aliases below dispatches on the action and validates only the fields the
notification mapping needs. Unknown keys are ignored.

Required fields (``number``, ``title``, ``html_url`` and ``user.login``) fail
validation when absent or mistyped. Everything else carries a default:
``"Unknown"`` for repository names, ``False`` for ``draft`` and ``merged``,
and ``None`` for optional text, users and timestamps.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003 - msgspec resolves annotations at runtime
import typing as typ

import msgspec

UNKNOWN = "Unknown"

ReviewState = typ.Literal["approved", "changes_requested", "commented"]


class GitHubUser(msgspec.Struct, kw_only=True, frozen=True):
    """A GitHub account as embedded in webhook payloads."""

    login: str
    avatar_url: str | None = None
    html_url: str | None = None
    url: str | None = None

    @property
    def profile_url(self) -> str | None:
        """Return the browser profile URL, falling back to the API URL."""
        return self.html_url or self.url


class RepositoryRef(msgspec.Struct, kw_only=True):
    """Repository naming carried by every supported event."""

    name: str | None = UNKNOWN
    full_name: str | None = UNKNOWN

    def __post_init__(self) -> None:
        """Replace explicit ``null`` names with the placeholder."""
        if self.name is None:
            self.name = UNKNOWN
        if self.full_name is None:
            self.full_name = UNKNOWN


class PullRequest(msgspec.Struct, kw_only=True, frozen=True):
    """Pull request fields shared by every pull-request variant."""

    number: int
    title: str
    html_url: str
    user: GitHubUser
    body: str | None = None
    draft: bool = False
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class ClosedPullRequest(PullRequest, kw_only=True, frozen=True):
    """Pull request snapshot attached to ``closed`` events."""

    merged: bool = False
    closed_at: dt.datetime | None = None
    merged_at: dt.datetime | None = None
    merge_commit_sha: str | None = None
    merged_by: GitHubUser | None = None


class Review(msgspec.Struct, kw_only=True, frozen=True):
    """A submitted pull request review."""

    state: ReviewState
    html_url: str
    user: GitHubUser
    id: int | None = None
    body: str | None = None
    submitted_at: dt.datetime | None = None


class _PullRequestEvent(msgspec.Struct, kw_only=True, tag_field="action"):
    """Base for ``pull_request`` event variants."""

    repository: RepositoryRef = msgspec.field(default_factory=RepositoryRef)


class PullRequestOpened(_PullRequestEvent, kw_only=True, tag="opened"):
    """``pull_request`` / ``opened``."""

    pull_request: PullRequest


class PullRequestClosed(_PullRequestEvent, kw_only=True, tag="closed"):
    """``pull_request`` / ``closed``, covering both merges and plain closes."""

    pull_request: ClosedPullRequest


class PullRequestConvertedToDraft(
    _PullRequestEvent, kw_only=True, tag="converted_to_draft"
):
    """``pull_request`` / ``converted_to_draft``."""

    pull_request: PullRequest


class PullRequestReadyForReview(
    _PullRequestEvent, kw_only=True, tag="ready_for_review"
):
    """``pull_request`` / ``ready_for_review``."""

    pull_request: PullRequest


class ReviewSubmitted(
    msgspec.Struct, kw_only=True, tag_field="action", tag="submitted"
):
    """``pull_request_review`` / ``submitted``."""

    review: Review
    pull_request: PullRequest
    repository: RepositoryRef = msgspec.field(default_factory=RepositoryRef)


type PullRequestVariant = (
    PullRequestOpened
    | PullRequestClosed
    | PullRequestConvertedToDraft
    | PullRequestReadyForReview
)
type ReviewVariant = ReviewSubmitted
type EventVariant = PullRequestVariant | ReviewVariant


def variant_action(variant: EventVariant) -> str:
    """Return the upstream ``action`` string a variant was decoded from."""
    return typ.cast("str", type(variant).__struct_config__.tag)


__all__ = [
    "UNKNOWN",
    "ClosedPullRequest",
    "EventVariant",
    "GitHubUser",
    "PullRequest",
    "PullRequestClosed",
    "PullRequestConvertedToDraft",
    "PullRequestOpened",
    "PullRequestReadyForReview",
    "PullRequestVariant",
    "RepositoryRef",
    "Review",
    "ReviewState",
    "ReviewSubmitted",
    "ReviewVariant",
    "variant_action",
]
