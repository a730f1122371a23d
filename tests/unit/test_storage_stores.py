"""Unit tests for the SQLAlchemy relay stores."""

from __future__ import annotations

import typing as typ
import uuid

import pytest
from sqlalchemy import select

from ghrelay.events.keys import DEFAULT_MENTION_PREFERENCES, EventKey
from ghrelay.storage import (
    DestinationStore,
    DuplicateRecordError,
    MentionIdentityStore,
    MentionPreference,
    MentionPreferenceStore,
    RecordNotFoundError,
    SqlAccountStore,
    SqlDestinationStore,
    SqlMentionIdentityStore,
    SqlMentionPreferenceStore,
)
from tests.helpers.github_payloads import NOTIFICATION_URL, SECRET

if typ.TYPE_CHECKING:
    from ghrelay.storage import DestinationRecord, SessionFactory


async def _seed_destination(
    session_factory: SessionFactory, repo: str = "octo/reef"
) -> DestinationRecord:
    accounts = SqlAccountStore(session_factory)
    account = await accounts.get_by_username("octo") or await accounts.create("octo")
    return await SqlDestinationStore(session_factory).create(
        owner_id=account.id,
        repo=repo,
        notification_url=NOTIFICATION_URL,
        secret=SECRET,
    )


class _RacingPreferenceStore(SqlMentionPreferenceStore):
    """Preference store whose first writes lose a race to another writer."""

    def __init__(self, session_factory: SessionFactory, *, lost_races: int) -> None:
        super().__init__(session_factory)
        self._lost_races = lost_races
        self.attempts = 0

    async def _write_preferences(
        self, destination_id: str, settings: typ.Mapping[EventKey, bool]
    ) -> None:
        self.attempts += 1
        if self.attempts > self._lost_races:
            await super()._write_preferences(destination_id, settings)
            return
        key = next(iter(settings))
        async with self._session_factory() as session, session.begin():
            rival = await session.scalar(
                select(MentionPreference).where(
                    MentionPreference.destination_id == destination_id,
                    MentionPreference.event_key == key.value,
                )
            )
            if rival is None:
                session.add(
                    MentionPreference(
                        destination_id=destination_id,
                        event_key=key.value,
                        enabled=not settings[key],
                    )
                )
        async with self._session_factory() as session, session.begin():
            session.add(
                MentionPreference(
                    destination_id=destination_id,
                    event_key=key.value,
                    enabled=settings[key],
                )
            )


def test_stores_satisfy_protocols() -> None:
    """The SQL stores implement the pipeline's read protocols."""
    factory = typ.cast("typ.Any", object())

    assert isinstance(SqlDestinationStore(factory), DestinationStore)
    assert isinstance(SqlMentionPreferenceStore(factory), MentionPreferenceStore)
    assert isinstance(SqlMentionIdentityStore(factory), MentionIdentityStore)


class TestAccounts:
    """Tests for SqlAccountStore."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, session_factory: SessionFactory) -> None:
        """Accounts round-trip by username."""
        store = SqlAccountStore(session_factory)

        created = await store.create("octo")
        loaded = await store.get_by_username("octo")

        assert loaded == created
        assert created.created_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_username(self, session_factory: SessionFactory) -> None:
        """Usernames are unique."""
        store = SqlAccountStore(session_factory)
        await store.create("octo")

        with pytest.raises(DuplicateRecordError, match="octo"):
            await store.create("octo")

    @pytest.mark.asyncio
    async def test_delete_cascades(self, session_factory: SessionFactory) -> None:
        """Deleting an account removes its destinations and their settings."""
        destination = await _seed_destination(session_factory)
        identities = SqlMentionIdentityStore(session_factory)
        await identities.create(destination.id, "octocat", "123456789012345678")

        assert await SqlAccountStore(session_factory).delete("octo") is True

        assert await SqlDestinationStore(session_factory).get_by_id(
            destination.id
        ) is None
        assert await identities.list_for_destination(destination.id) == []
        assert await SqlAccountStore(session_factory).delete("octo") is False


class TestDestinations:
    """Tests for SqlDestinationStore."""

    @pytest.mark.asyncio
    async def test_create_and_get_by_id(self, session_factory: SessionFactory) -> None:
        """Destinations are addressed by a UUID identifier."""
        created = await _seed_destination(session_factory)

        loaded = await SqlDestinationStore(session_factory).get_by_id(created.id)

        assert loaded == created
        assert uuid.UUID(created.id)
        assert loaded is not None
        assert loaded.secret == SECRET

    @pytest.mark.asyncio
    @pytest.mark.parametrize("destination_id", ["not-a-uuid", str(uuid.uuid4())])
    async def test_get_unknown(
        self, session_factory: SessionFactory, destination_id: str
    ) -> None:
        """Unknown and malformed identifiers return None."""
        store = SqlDestinationStore(session_factory)

        assert await store.get_by_id(destination_id) is None

    @pytest.mark.asyncio
    async def test_repo_is_unique(self, session_factory: SessionFactory) -> None:
        """A repository can be bound to only one destination."""
        await _seed_destination(session_factory)

        with pytest.raises(DuplicateRecordError, match="octo/reef"):
            await _seed_destination(session_factory)

    @pytest.mark.asyncio
    async def test_list_and_lookup_for_owner(
        self, session_factory: SessionFactory
    ) -> None:
        """Owners list their destinations ordered by repository."""
        second = await _seed_destination(session_factory, "octo/zephyr")
        first = await _seed_destination(session_factory, "octo/atoll")
        store = SqlDestinationStore(session_factory)

        listed = await store.list_for_owner(first.owner_id)

        assert [d.repo for d in listed] == ["octo/atoll", "octo/zephyr"]
        assert await store.get_for_owner(first.owner_id, "octo/zephyr") == second
        assert await store.get_for_owner(first.owner_id, "octo/missing") is None

    @pytest.mark.asyncio
    async def test_rotate_secret(self, session_factory: SessionFactory) -> None:
        """Rotation replaces the signing secret."""
        created = await _seed_destination(session_factory)
        store = SqlDestinationStore(session_factory)

        await store.rotate_secret(created.owner_id, created.repo, "fresh-secret")

        loaded = await store.get_by_id(created.id)
        assert loaded is not None
        assert loaded.secret == "fresh-secret"

    @pytest.mark.asyncio
    async def test_rotate_unknown(self, session_factory: SessionFactory) -> None:
        """Rotating a missing destination raises."""
        store = SqlDestinationStore(session_factory)

        with pytest.raises(RecordNotFoundError):
            await store.rotate_secret("owner", "octo/missing", "x")

    @pytest.mark.asyncio
    async def test_delete_removes_settings(
        self, session_factory: SessionFactory
    ) -> None:
        """Deleting a destination drops its preferences and identities."""
        created = await _seed_destination(session_factory)
        preferences = SqlMentionPreferenceStore(session_factory)
        identities = SqlMentionIdentityStore(session_factory)
        await preferences.upsert(created.id, EventKey.PR_OPENED, enabled=True)
        await identities.create(created.id, "octocat", "123456789012345678")
        store = SqlDestinationStore(session_factory)

        assert await store.delete(created.owner_id, created.repo) is True

        assert await store.get_by_id(created.id) is None
        assert await identities.list_for_destination(created.id) == []
        assert await preferences.get_for_destination(created.id) == dict(
            DEFAULT_MENTION_PREFERENCES
        )
        assert await store.delete(created.owner_id, created.repo) is False

    @pytest.mark.asyncio
    async def test_secret_hidden_from_repr(
        self, session_factory: SessionFactory
    ) -> None:
        """Destination records never show the secret in repr."""
        created = await _seed_destination(session_factory)

        assert SECRET not in repr(created)


class TestMentionPreferences:
    """Tests for SqlMentionPreferenceStore."""

    @pytest.mark.asyncio
    async def test_defaults_without_rows(self, session_factory: SessionFactory) -> None:
        """Destinations without rows get every default."""
        created = await _seed_destination(session_factory)

        preferences = await SqlMentionPreferenceStore(
            session_factory
        ).get_for_destination(created.id)

        assert preferences == dict(DEFAULT_MENTION_PREFERENCES)

    @pytest.mark.asyncio
    async def test_upsert_overrides_and_updates(
        self, session_factory: SessionFactory
    ) -> None:
        """Upserts create then update a single row per key."""
        created = await _seed_destination(session_factory)
        store = SqlMentionPreferenceStore(session_factory)

        await store.upsert(created.id, EventKey.REVIEW_APPROVED, enabled=False)
        await store.upsert(created.id, EventKey.PR_MERGED, enabled=True)
        await store.upsert(created.id, EventKey.PR_MERGED, enabled=False)
        await store.upsert(created.id, EventKey.PR_MERGED, enabled=True)

        preferences = await store.get_for_destination(created.id)
        assert preferences[EventKey.REVIEW_APPROVED] is False
        assert preferences[EventKey.PR_MERGED] is True
        assert preferences[EventKey.REVIEW_CHANGES_REQUESTED] is True
        assert set(preferences) == set(EventKey)

    @pytest.mark.asyncio
    async def test_unknown_stored_keys_are_ignored(
        self, session_factory: SessionFactory
    ) -> None:
        """Rows for retired keys do not leak into the map."""
        created = await _seed_destination(session_factory)
        async with session_factory() as session, session.begin():
            session.add(
                MentionPreference(
                    destination_id=created.id, event_key="pr_reopened", enabled=True
                )
            )

        preferences = await SqlMentionPreferenceStore(
            session_factory
        ).get_for_destination(created.id)

        assert set(preferences) == set(EventKey)

    @pytest.mark.asyncio
    async def test_bulk_upsert(self, session_factory: SessionFactory) -> None:
        """Several keys can be set at once."""
        created = await _seed_destination(session_factory)
        store = SqlMentionPreferenceStore(session_factory)

        await store.bulk_upsert(
            created.id,
            {EventKey.PR_OPENED: True, EventKey.REVIEW_CHANGES_REQUESTED: False},
        )

        preferences = await store.get_for_destination(created.id)
        assert preferences[EventKey.PR_OPENED] is True
        assert preferences[EventKey.REVIEW_CHANGES_REQUESTED] is False

    @pytest.mark.asyncio
    async def test_bulk_upsert_recovers_from_concurrent_insert(
        self, session_factory: SessionFactory
    ) -> None:
        """A row inserted by another writer is updated on the repeated write."""
        created = await _seed_destination(session_factory)
        store = _RacingPreferenceStore(session_factory, lost_races=1)

        await store.bulk_upsert(created.id, {EventKey.PR_MERGED: True})

        assert store.attempts == 2, "the write should be repeated once"
        preferences = await store.get_for_destination(created.id)
        assert preferences[EventKey.PR_MERGED] is True

    @pytest.mark.asyncio
    async def test_bulk_upsert_reports_repeated_conflict(
        self, session_factory: SessionFactory
    ) -> None:
        """A conflict on the repeated write surfaces as a duplicate record."""
        created = await _seed_destination(session_factory)
        store = _RacingPreferenceStore(session_factory, lost_races=2)

        with pytest.raises(DuplicateRecordError, match="concurrently"):
            await store.bulk_upsert(created.id, {EventKey.PR_MERGED: True})

        assert store.attempts == 2, "the write should not be repeated twice"


class TestMentionIdentities:
    """Tests for SqlMentionIdentityStore."""

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, session_factory: SessionFactory) -> None:
        """Identities are found by destination and GitHub login."""
        created = await _seed_destination(session_factory)
        store = SqlMentionIdentityStore(session_factory)

        identity = await store.create(created.id, "octocat", "123456789012345678")

        assert await store.get_by_source_username(created.id, "octocat") == identity
        assert await store.get_by_source_username(created.id, "hubot") is None
        assert await store.get_by_source_username(str(uuid.uuid4()), "octocat") is None

    @pytest.mark.asyncio
    async def test_login_unique_per_destination(
        self, session_factory: SessionFactory
    ) -> None:
        """A login links to one Discord user per destination."""
        first = await _seed_destination(session_factory)
        second = await _seed_destination(session_factory, "octo/atoll")
        store = SqlMentionIdentityStore(session_factory)
        await store.create(first.id, "octocat", "123456789012345678")

        with pytest.raises(DuplicateRecordError, match="octocat"):
            await store.create(first.id, "octocat", "876543210987654321")
        await store.create(second.id, "octocat", "876543210987654321")

    @pytest.mark.asyncio
    async def test_list_and_delete(self, session_factory: SessionFactory) -> None:
        """Identities list in login order and can be removed."""
        created = await _seed_destination(session_factory)
        store = SqlMentionIdentityStore(session_factory)
        octocat = await store.create(created.id, "octocat", "123456789012345678")
        hubot = await store.create(created.id, "hubot", "876543210987654321")

        assert await store.list_for_destination(created.id) == [hubot, octocat]
        assert await store.delete(hubot.id) is True
        assert await store.delete(hubot.id) is False
        assert await store.list_for_destination(created.id) == [octocat]
