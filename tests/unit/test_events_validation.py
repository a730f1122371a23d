"""Unit tests for webhook payload validation.

Run with:
    pytest tests/unit/test_events_validation.py
"""

from __future__ import annotations

import datetime as dt

import pytest

from ghrelay.events.payloads import (
    UNKNOWN,
    PullRequestClosed,
    PullRequestConvertedToDraft,
    PullRequestOpened,
    PullRequestReadyForReview,
    ReviewSubmitted,
    variant_action,
)
from ghrelay.events.validation import (
    MALFORMED_JSON,
    MISSING_ACTION,
    NOT_AN_OBJECT,
    InvalidPayload,
    ParsedEvent,
    UnhandledEvent,
    validate_payload,
)
from tests.helpers.github_payloads import (
    closed_payload,
    encode,
    pr_payload,
    review_payload,
)


class TestSupportedActions:
    """Recognised actions decode into their variants."""

    @pytest.mark.parametrize(
        ("action", "variant_type"),
        [
            ("opened", PullRequestOpened),
            ("converted_to_draft", PullRequestConvertedToDraft),
            ("ready_for_review", PullRequestReadyForReview),
        ],
    )
    def test_pull_request_actions(self, action: str, variant_type: type) -> None:
        """Pull request actions produce the matching variant."""
        outcome = validate_payload("pull_request", encode(pr_payload(action)))

        assert isinstance(outcome, ParsedEvent), f"expected parse, got {outcome!r}"
        assert isinstance(outcome.variant, variant_type), "wrong variant type"
        assert outcome.action == action, "action should be echoed"
        assert variant_action(outcome.variant) == action, "tag should match action"

    def test_closed_carries_merge_facts(self) -> None:
        """Closed payloads expose merge details."""
        outcome = validate_payload(
            "pull_request", encode(closed_payload(merged=True))
        )

        assert isinstance(outcome, ParsedEvent)
        assert isinstance(outcome.variant, PullRequestClosed)
        pr = outcome.variant.pull_request
        assert pr.merged is True, "merged flag should be decoded"
        assert pr.merge_commit_sha == "abcdef1234567890"
        assert pr.merged_by is not None
        assert pr.merged_by.login == "hubot"
        assert pr.closed_at == dt.datetime(2024, 5, 3, 16, 45, tzinfo=dt.UTC)

    def test_review_submitted(self) -> None:
        """Review submissions decode with their state."""
        outcome = validate_payload(
            "pull_request_review", encode(review_payload("changes_requested"))
        )

        assert isinstance(outcome, ParsedEvent)
        assert isinstance(outcome.variant, ReviewSubmitted)
        assert outcome.variant.review.state == "changes_requested"
        assert outcome.variant.pull_request.user.login == "octocat"


class TestUnhandled:
    """Deliveries that are deliberately not relayed."""

    def test_unknown_event_type_skips_body(self) -> None:
        """Unsupported event types are unhandled even with a garbage body."""
        outcome = validate_payload("push", b"not json at all")

        assert outcome == UnhandledEvent("Event type 'push' not handled")

    @pytest.mark.parametrize("action", ["synchronize", "edited", "labeled"])
    def test_ignored_and_unknown_actions(self, action: str) -> None:
        """Ignored and unknown pull request actions are unhandled."""
        outcome = validate_payload("pull_request", encode(pr_payload(action)))

        assert outcome == UnhandledEvent(
            f"Event type 'pull_request:{action}' not handled"
        )

    def test_review_edited_is_unhandled(self) -> None:
        """Only submitted reviews are relayed."""
        payload = review_payload()
        payload["action"] = "edited"

        outcome = validate_payload("pull_request_review", encode(payload))

        assert isinstance(outcome, UnhandledEvent)

    def test_unhandled_action_ignores_bad_fields(self) -> None:
        """An ignored action is reported before the schema is checked."""
        outcome = validate_payload(
            "pull_request", encode({"action": "synchronize", "pull_request": 5})
        )

        assert isinstance(outcome, UnhandledEvent)


class TestInvalid:
    """Bodies that fail validation."""

    def test_malformed_json(self) -> None:
        """Malformed JSON is invalid."""
        outcome = validate_payload("pull_request", b"{not json")

        assert outcome == InvalidPayload(MALFORMED_JSON)

    def test_non_object_body(self) -> None:
        """JSON arrays are rejected."""
        outcome = validate_payload("pull_request", b"[1, 2]")

        assert outcome == InvalidPayload(NOT_AN_OBJECT)

    def test_missing_action(self) -> None:
        """Bodies without an action are invalid."""
        payload = pr_payload()
        del payload["action"]

        outcome = validate_payload("pull_request", encode(payload))

        assert outcome == InvalidPayload(MISSING_ACTION)

    @pytest.mark.parametrize("field", ["number", "title", "html_url", "user"])
    def test_missing_required_pull_request_field(self, field: str) -> None:
        """Each required pull request field must be present."""
        payload = pr_payload()
        del payload["pull_request"][field]

        outcome = validate_payload("pull_request", encode(payload))

        assert isinstance(outcome, InvalidPayload), f"{field} should be required"
        assert field in outcome.reason, "reason should name the field"

    def test_mistyped_number(self) -> None:
        """A string PR number is invalid."""
        outcome = validate_payload(
            "pull_request", encode(pr_payload(number="forty-two"))
        )

        assert isinstance(outcome, InvalidPayload)

    @pytest.mark.parametrize("field", ["created_at", "updated_at"])
    def test_unparseable_pull_request_date(self, field: str) -> None:
        """Pull request timestamps must be ISO 8601."""
        outcome = validate_payload(
            "pull_request", encode(pr_payload(**{field: "not-a-date"}))
        )

        assert isinstance(outcome, InvalidPayload), f"{field} should be coerced"
        assert field in outcome.reason, "reason should name the field"

    def test_unparseable_closed_at(self) -> None:
        """The close timestamp is coerced on closed events."""
        payload = closed_payload(merged=False)
        payload["pull_request"]["closed_at"] = "not-a-date"

        outcome = validate_payload("pull_request", encode(payload))

        assert isinstance(outcome, InvalidPayload)

    def test_unparseable_review_submitted_at(self) -> None:
        """The review submission timestamp is coerced."""
        payload = review_payload()
        payload["review"]["submitted_at"] = "not-a-date"

        outcome = validate_payload("pull_request_review", encode(payload))

        assert isinstance(outcome, InvalidPayload)
        assert "submitted_at" in outcome.reason

    def test_unknown_review_state(self) -> None:
        """Review states outside the supported set are invalid."""
        outcome = validate_payload(
            "pull_request_review", encode(review_payload("dismissed"))
        )

        assert isinstance(outcome, InvalidPayload)


class TestDefaults:
    """Optional fields fall back to documented defaults."""

    def test_missing_repository_names(self) -> None:
        """Null or absent repository names become the placeholder."""
        payload = pr_payload()
        payload["repository"] = {"name": None}

        outcome = validate_payload("pull_request", encode(payload))

        assert isinstance(outcome, ParsedEvent)
        repository = outcome.variant.repository
        assert repository.name == UNKNOWN
        assert repository.full_name == UNKNOWN

    def test_missing_repository_object(self) -> None:
        """An absent repository object defaults both names."""
        payload = pr_payload()
        del payload["repository"]

        outcome = validate_payload("pull_request", encode(payload))

        assert isinstance(outcome, ParsedEvent)
        assert outcome.variant.repository.full_name == UNKNOWN

    def test_optional_pull_request_fields(self) -> None:
        """Body, draft and timestamps are optional."""
        payload = pr_payload()
        for field in ("body", "draft", "created_at", "updated_at"):
            del payload["pull_request"][field]

        outcome = validate_payload("pull_request", encode(payload))

        assert isinstance(outcome, ParsedEvent)
        assert isinstance(outcome.variant, PullRequestOpened)
        pr = outcome.variant.pull_request
        assert pr.body is None
        assert pr.draft is False
        assert pr.created_at is None

    def test_user_without_avatar(self) -> None:
        """Users only need a login."""
        outcome = validate_payload(
            "pull_request", encode(pr_payload(user={"login": "ghost"}))
        )

        assert isinstance(outcome, ParsedEvent)
        user = outcome.variant.pull_request.user
        assert user.avatar_url is None
        assert user.profile_url is None
