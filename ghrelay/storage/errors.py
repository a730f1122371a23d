"""Storage-layer error types."""

from __future__ import annotations


class TimezoneAwareRequiredError(ValueError):
    """Raised when a naive datetime is bound to a UTC column."""

    def __init__(self, context: str) -> None:
        """Attach a consistent message for the failing context."""
        super().__init__(f"{context} must be timezone aware")

    @classmethod
    def for_column(cls) -> TimezoneAwareRequiredError:
        """Return an error for a naive value bound to a timestamp column."""
        return cls("timestamp column values")


class DuplicateRecordError(ValueError):
    """Raised when a write would violate a uniqueness rule."""

    @classmethod
    def for_repo(cls, repo: str) -> DuplicateRecordError:
        """Return an error for a repository already bound to a destination."""
        return cls(f"a destination for repository '{repo}' already exists")

    @classmethod
    def for_identity(
        cls, destination_id: str, source_username: str
    ) -> DuplicateRecordError:
        """Return an error for a GitHub login already linked on a destination."""
        return cls(
            f"'{source_username}' is already linked on destination {destination_id}"
        )

    @classmethod
    def for_preferences(cls, destination_id: str) -> DuplicateRecordError:
        """Return an error for preference rows that could not be written."""
        return cls(
            f"mention preferences for destination {destination_id} were changed "
            "concurrently; try again"
        )

    @classmethod
    def for_account(cls, username: str) -> DuplicateRecordError:
        """Return an error for an account name already in use."""
        return cls(f"account '{username}' already exists")


class RecordNotFoundError(LookupError):
    """Raised when an operator write targets a record that does not exist."""

    @classmethod
    def account(cls, username: str) -> RecordNotFoundError:
        """Return an error for an unknown account name."""
        return cls(f"no account named '{username}'")

    @classmethod
    def destination(cls, label: str) -> RecordNotFoundError:
        """Return an error for an unknown destination."""
        return cls(f"no destination matching '{label}'")


__all__ = [
    "DuplicateRecordError",
    "RecordNotFoundError",
    "TimezoneAwareRequiredError",
]
