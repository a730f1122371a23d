"""SQLAlchemy implementations of the relay stores.

Each store owns a session factory and opens a short-lived session per call.
The read methods satisfy the protocols in :mod:`ghrelay.storage.protocols`;
the write methods back the admin CLI.
"""

from __future__ import annotations

import typing as typ
import uuid

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ghrelay.events.keys import DEFAULT_MENTION_PREFERENCES, EventKey, parse_event_key
from ghrelay.storage.errors import DuplicateRecordError, RecordNotFoundError
from ghrelay.storage.models import (
    Account,
    Destination,
    MentionIdentity,
    MentionPreference,
)
from ghrelay.storage.protocols import (
    AccountRecord,
    DestinationRecord,
    MentionIdentityRecord,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

type SessionFactory = async_sessionmaker[AsyncSession]


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _to_destination_record(row: Destination) -> DestinationRecord:
    return DestinationRecord(
        id=row.id,
        owner_id=row.owner_id,
        repo=row.repo,
        notification_url=row.notification_url,
        secret=row.secret,
        created_at=row.created_at,
    )


def _to_identity_record(row: MentionIdentity) -> MentionIdentityRecord:
    return MentionIdentityRecord(
        id=row.id,
        destination_id=row.destination_id,
        source_username=row.source_username,
        target_handle=row.target_handle,
        linked_owner_id=row.linked_owner_id,
        created_at=row.created_at,
    )


async def _delete_destination_children(
    session: AsyncSession, destination_ids: cabc.Collection[str]
) -> None:
    await session.execute(
        delete(MentionPreference).where(
            MentionPreference.destination_id.in_(destination_ids)
        )
    )
    await session.execute(
        delete(MentionIdentity).where(
            MentionIdentity.destination_id.in_(destination_ids)
        )
    )


class SqlAccountStore:
    """Accounts that own destinations."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Bind the store to ``session_factory``."""
        self._session_factory = session_factory

    async def create(self, username: str) -> AccountRecord:
        """Create an account, rejecting duplicate usernames."""
        async with self._session_factory() as session:
            account = Account(username=username)
            session.add(account)
            try:
                await session.flush()
            except IntegrityError as exc:
                raise DuplicateRecordError.for_account(username) from exc
            record = AccountRecord(
                id=account.id,
                username=account.username,
                created_at=account.created_at,
            )
            await session.commit()
            return record

    async def get_by_username(self, username: str) -> AccountRecord | None:
        """Return the account named ``username``, or ``None``."""
        async with self._session_factory() as session:
            account = await session.scalar(
                select(Account).where(Account.username == username)
            )
            if account is None:
                return None
            return AccountRecord(
                id=account.id,
                username=account.username,
                created_at=account.created_at,
            )

    async def delete(self, username: str) -> bool:
        """Delete an account together with its destinations and their settings."""
        async with self._session_factory() as session, session.begin():
            account = await session.scalar(
                select(Account).where(Account.username == username)
            )
            if account is None:
                return False
            destination_ids = list(
                await session.scalars(
                    select(Destination.id).where(Destination.owner_id == account.id)
                )
            )
            await _delete_destination_children(session, destination_ids)
            await session.execute(
                delete(Destination).where(Destination.owner_id == account.id)
            )
            await session.delete(account)
        return True


class SqlDestinationStore:
    """Destinations keyed by id, unique per repository."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Bind the store to ``session_factory``."""
        self._session_factory = session_factory

    async def get_by_id(self, destination_id: str) -> DestinationRecord | None:
        """Return the destination with ``destination_id``, or ``None``.

        Identifiers that are not UUIDs cannot exist and are answered without
        a query.
        """
        if not _is_uuid(destination_id):
            return None
        async with self._session_factory() as session:
            row = await session.get(Destination, destination_id)
            return None if row is None else _to_destination_record(row)

    async def create(
        self,
        *,
        owner_id: str,
        repo: str,
        notification_url: str,
        secret: str,
    ) -> DestinationRecord:
        """Create a destination, rejecting a repository that is already bound."""
        async with self._session_factory() as session:
            existing = await session.scalar(
                select(Destination.id).where(Destination.repo == repo)
            )
            if existing is not None:
                raise DuplicateRecordError.for_repo(repo)
            row = Destination(
                owner_id=owner_id,
                repo=repo,
                notification_url=notification_url,
                secret=secret,
            )
            session.add(row)
            try:
                await session.flush()
            except IntegrityError as exc:
                raise DuplicateRecordError.for_repo(repo) from exc
            record = _to_destination_record(row)
            await session.commit()
            return record

    async def list_for_owner(self, owner_id: str) -> list[DestinationRecord]:
        """Return the owner's destinations ordered by repository."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(Destination)
                .where(Destination.owner_id == owner_id)
                .order_by(Destination.repo)
            )
            return [_to_destination_record(row) for row in rows]

    async def get_for_owner(self, owner_id: str, repo: str) -> DestinationRecord | None:
        """Return the owner's destination for ``repo``, or ``None``."""
        async with self._session_factory() as session:
            row = await session.scalar(
                select(Destination).where(
                    Destination.owner_id == owner_id, Destination.repo == repo
                )
            )
            return None if row is None else _to_destination_record(row)

    async def rotate_secret(self, owner_id: str, repo: str, secret: str) -> None:
        """Replace the signing secret of the owner's destination for ``repo``."""
        async with self._session_factory() as session, session.begin():
            row = await session.scalar(
                select(Destination).where(
                    Destination.owner_id == owner_id, Destination.repo == repo
                )
            )
            if row is None:
                raise RecordNotFoundError.destination(repo)
            row.secret = secret

    async def delete(self, owner_id: str, repo: str) -> bool:
        """Delete the owner's destination for ``repo`` and its mention settings."""
        async with self._session_factory() as session, session.begin():
            row = await session.scalar(
                select(Destination).where(
                    Destination.owner_id == owner_id, Destination.repo == repo
                )
            )
            if row is None:
                return False
            await _delete_destination_children(session, [row.id])
            await session.delete(row)
        return True


class SqlMentionPreferenceStore:
    """Mention preferences, one row per ``(destination, event key)``."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Bind the store to ``session_factory``."""
        self._session_factory = session_factory

    async def get_for_destination(self, destination_id: str) -> dict[EventKey, bool]:
        """Return stored preferences overlaid on the defaults.

        Rows whose key is no longer a known :class:`EventKey` are ignored.
        """
        preferences = dict(DEFAULT_MENTION_PREFERENCES)
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(MentionPreference).where(
                    MentionPreference.destination_id == destination_id
                )
            )
            for row in rows:
                key = parse_event_key(row.event_key)
                if key is not None:
                    preferences[key] = row.enabled
        return preferences

    async def upsert(
        self,
        destination_id: str,
        event_key: EventKey,
        *,
        enabled: bool,
    ) -> None:
        """Set one preference, updating the existing row when present."""
        await self.bulk_upsert(destination_id, {event_key: enabled})

    async def bulk_upsert(
        self, destination_id: str, settings: cabc.Mapping[EventKey, bool]
    ) -> None:
        """Set several preferences in a single transaction.

        A concurrent writer may insert one of the rows between the lookup and
        the insert. The write is then repeated once, which updates the row the
        other writer created.

        Raises
        ------
        DuplicateRecordError
            When the repeated write still violates a uniqueness rule.

        """
        if not settings:
            return
        try:
            await self._write_preferences(destination_id, settings)
        except IntegrityError:
            try:
                await self._write_preferences(destination_id, settings)
            except IntegrityError as exc:
                raise DuplicateRecordError.for_preferences(destination_id) from exc

    async def _write_preferences(
        self, destination_id: str, settings: cabc.Mapping[EventKey, bool]
    ) -> None:
        async with self._session_factory() as session, session.begin():
            existing = {
                row.event_key: row
                for row in await session.scalars(
                    select(MentionPreference).where(
                        MentionPreference.destination_id == destination_id,
                        MentionPreference.event_key.in_(
                            [key.value for key in settings]
                        ),
                    )
                )
            }
            for key, enabled in settings.items():
                row = existing.get(key.value)
                if row is None:
                    session.add(
                        MentionPreference(
                            destination_id=destination_id,
                            event_key=key.value,
                            enabled=enabled,
                        )
                    )
                else:
                    row.enabled = enabled


class SqlMentionIdentityStore:
    """GitHub-to-Discord identity links, unique per destination and login."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Bind the store to ``session_factory``."""
        self._session_factory = session_factory

    async def get_by_source_username(
        self, destination_id: str, source_username: str
    ) -> MentionIdentityRecord | None:
        """Return the identity linked to ``source_username``, or ``None``."""
        async with self._session_factory() as session:
            row = await session.scalar(
                select(MentionIdentity).where(
                    MentionIdentity.destination_id == destination_id,
                    MentionIdentity.source_username == source_username,
                )
            )
            return None if row is None else _to_identity_record(row)

    async def create(
        self,
        destination_id: str,
        source_username: str,
        target_handle: str,
        *,
        linked_owner_id: str | None = None,
    ) -> MentionIdentityRecord:
        """Link ``source_username`` to ``target_handle`` on a destination."""
        async with self._session_factory() as session:
            row = MentionIdentity(
                destination_id=destination_id,
                source_username=source_username,
                target_handle=target_handle,
                linked_owner_id=linked_owner_id,
            )
            session.add(row)
            try:
                await session.flush()
            except IntegrityError as exc:
                raise DuplicateRecordError.for_identity(
                    destination_id, source_username
                ) from exc
            record = _to_identity_record(row)
            await session.commit()
            return record

    async def list_for_destination(
        self, destination_id: str
    ) -> list[MentionIdentityRecord]:
        """Return the destination's identities ordered by GitHub login."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(MentionIdentity)
                .where(MentionIdentity.destination_id == destination_id)
                .order_by(MentionIdentity.source_username)
            )
            return [_to_identity_record(row) for row in rows]

    async def delete(self, identity_id: str) -> bool:
        """Delete one identity link, returning whether it existed."""
        async with self._session_factory() as session, session.begin():
            row = await session.get(MentionIdentity, identity_id)
            if row is None:
                return False
            await session.delete(row)
        return True


__all__ = [
    "SessionFactory",
    "SqlAccountStore",
    "SqlDestinationStore",
    "SqlMentionIdentityStore",
    "SqlMentionPreferenceStore",
]
