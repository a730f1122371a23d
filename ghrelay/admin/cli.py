"""Operator commands for managing accounts, destinations and mentions.

Every command talks to the database named by ``--database-url`` or
``GHRELAY_DATABASE_URL``, except ``send-test`` which only needs network
access to Discord. Secrets and Discord webhook URLs are always printed in
redacted form.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses as dc
import re
import sys
import typing as typ

from ghrelay.common.redact import redact_notification_url, redact_secret
from ghrelay.common.time import utcnow
from ghrelay.config import RelayConfig
from ghrelay.events.keys import EventKey, parse_event_key
from ghrelay.events.notification import (
    EmbedAuthor,
    EmbedColour,
    EmbedFooter,
    Notification,
)
from ghrelay.storage.errors import DuplicateRecordError, RecordNotFoundError
from ghrelay.storage.models import init_storage
from ghrelay.storage.stores import (
    SqlAccountStore,
    SqlDestinationStore,
    SqlMentionIdentityStore,
    SqlMentionPreferenceStore,
)
from ghrelay.webhook.dispatch import NotificationDispatcher
from ghrelay.webhook.mentions import format_mention

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncEngine

    from ghrelay.storage.stores import SessionFactory

DISCORD_WEBHOOK_PREFIX = "https://discord.com/api/webhooks/"
_DISCORD_ID = re.compile(r"^\d{15,25}$")
_TRUE_VALUES = frozenset({"true", "yes", "on", "1"})
_FALSE_VALUES = frozenset({"false", "no", "off", "0"})


class CommandError(ValueError):
    """Raised for operator input the command cannot act on."""


@dc.dataclass(frozen=True, slots=True)
class _Context:
    config: RelayConfig
    engine: AsyncEngine | None = None
    session_factory: SessionFactory | None = None


type _Handler = cabc.Callable[[argparse.Namespace, _Context], cabc.Awaitable[int]]


def _require_sessions(ctx: _Context) -> SessionFactory:
    if ctx.session_factory is None:
        msg = "no database configured; pass --database-url or set GHRELAY_DATABASE_URL"
        raise CommandError(msg)
    return ctx.session_factory


def validate_notification_url(url: str) -> str:
    """Return ``url`` if it is a Discord webhook URL, else raise."""
    if not url.startswith(DISCORD_WEBHOOK_PREFIX):
        msg = f"notification URL must start with {DISCORD_WEBHOOK_PREFIX}"
        raise CommandError(msg)
    return url


def parse_mention_settings(pairs: cabc.Iterable[str]) -> dict[EventKey, bool]:
    """Parse ``key=true|false`` arguments into a preference mapping.

    Examples
    --------
    >>> parse_mention_settings(["pr_opened=true", "review_commented=off"])[
    ...     EventKey.REVIEW_COMMENTED
    ... ]
    False

    """
    settings: dict[EventKey, bool] = {}
    for pair in pairs:
        raw_key, sep, raw_value = pair.partition("=")
        if not sep:
            msg = f"expected key=true|false, got {pair!r}"
            raise CommandError(msg)
        key = parse_event_key(raw_key.strip())
        if key is None:
            known = ", ".join(EventKey)
            msg = f"unknown event key {raw_key!r}; expected one of: {known}"
            raise CommandError(msg)
        value = raw_value.strip().lower()
        if value in _TRUE_VALUES:
            settings[key] = True
        elif value in _FALSE_VALUES:
            settings[key] = False
        else:
            msg = f"expected true or false for {key}, got {raw_value!r}"
            raise CommandError(msg)
    return settings


async def _owner_id(session_factory: SessionFactory, username: str) -> str:
    account = await SqlAccountStore(session_factory).get_by_username(username)
    if account is None:
        raise RecordNotFoundError.account(username)
    return account.id


async def _require_destination(
    session_factory: SessionFactory, destination_id: str
) -> None:
    if await SqlDestinationStore(session_factory).get_by_id(destination_id) is None:
        raise RecordNotFoundError.destination(destination_id)


async def _cmd_init_db(_args: argparse.Namespace, ctx: _Context) -> int:
    _require_sessions(ctx)
    await init_storage(typ.cast("AsyncEngine", ctx.engine))
    print("database tables are ready")
    return 0


async def _cmd_add_account(args: argparse.Namespace, ctx: _Context) -> int:
    account = await SqlAccountStore(_require_sessions(ctx)).create(args.username)
    print(f"created account {account.username} ({account.id})")
    return 0


async def _cmd_remove_account(args: argparse.Namespace, ctx: _Context) -> int:
    if not await SqlAccountStore(_require_sessions(ctx)).delete(args.username):
        raise RecordNotFoundError.account(args.username)
    print(f"removed account {args.username} and its destinations")
    return 0


async def _cmd_add_destination(args: argparse.Namespace, ctx: _Context) -> int:
    session_factory = _require_sessions(ctx)
    url = validate_notification_url(args.url)
    if not args.secret.strip():
        msg = "secret must not be empty"
        raise CommandError(msg)
    owner_id = await _owner_id(session_factory, args.owner)
    destination = await SqlDestinationStore(session_factory).create(
        owner_id=owner_id,
        repo=args.repo,
        notification_url=url,
        secret=args.secret,
    )
    print(f"created destination {destination.id} for {destination.repo}")
    print(f"GitHub payload URL: {ctx.config.webhook_url_for(destination.id)}")
    print("Set the content type to application/json and use the same secret.")
    return 0


async def _cmd_list_destinations(args: argparse.Namespace, ctx: _Context) -> int:
    session_factory = _require_sessions(ctx)
    owner_id = await _owner_id(session_factory, args.owner)
    destinations = await SqlDestinationStore(session_factory).list_for_owner(owner_id)
    if not destinations:
        print(f"no destinations for {args.owner}")
        return 0
    for destination in destinations:
        print(
            f"{destination.id}  {destination.repo}  "
            f"url={redact_notification_url(destination.notification_url)}  "
            f"secret={redact_secret(destination.secret)}"
        )
    return 0


async def _cmd_rotate_secret(args: argparse.Namespace, ctx: _Context) -> int:
    session_factory = _require_sessions(ctx)
    if not args.secret.strip():
        msg = "secret must not be empty"
        raise CommandError(msg)
    owner_id = await _owner_id(session_factory, args.owner)
    await SqlDestinationStore(session_factory).rotate_secret(
        owner_id, args.repo, args.secret
    )
    print(f"rotated secret for {args.repo}; update the GitHub webhook to match")
    return 0


async def _cmd_remove_destination(args: argparse.Namespace, ctx: _Context) -> int:
    session_factory = _require_sessions(ctx)
    owner_id = await _owner_id(session_factory, args.owner)
    if not await SqlDestinationStore(session_factory).delete(owner_id, args.repo):
        raise RecordNotFoundError.destination(args.repo)
    print(f"removed destination for {args.repo}")
    return 0


async def _cmd_set_mentions(args: argparse.Namespace, ctx: _Context) -> int:
    session_factory = _require_sessions(ctx)
    settings = parse_mention_settings(args.settings)
    await _require_destination(session_factory, args.destination_id)
    store = SqlMentionPreferenceStore(session_factory)
    await store.bulk_upsert(args.destination_id, settings)
    for key, enabled in (await store.get_for_destination(args.destination_id)).items():
        print(f"{key}={'true' if enabled else 'false'}")
    return 0


async def _cmd_add_identity(args: argparse.Namespace, ctx: _Context) -> int:
    session_factory = _require_sessions(ctx)
    if not _DISCORD_ID.match(args.discord_id):
        msg = f"Discord user id must be numeric, got {args.discord_id!r}"
        raise CommandError(msg)
    await _require_destination(session_factory, args.destination_id)
    linked_owner_id = None
    if args.linked_owner is not None:
        linked_owner_id = await _owner_id(session_factory, args.linked_owner)
    identity = await SqlMentionIdentityStore(session_factory).create(
        args.destination_id,
        args.github_login,
        args.discord_id,
        linked_owner_id=linked_owner_id,
    )
    mention = format_mention(identity.target_handle)
    print(f"linked {identity.source_username} -> {mention} ({identity.id})")
    return 0


async def _cmd_list_identities(args: argparse.Namespace, ctx: _Context) -> int:
    identities = await SqlMentionIdentityStore(
        _require_sessions(ctx)
    ).list_for_destination(args.destination_id)
    if not identities:
        print(f"no identities for destination {args.destination_id}")
        return 0
    for identity in identities:
        mention = format_mention(identity.target_handle)
        print(f"{identity.id}  {identity.source_username} -> {mention}")
    return 0


async def _cmd_remove_identity(args: argparse.Namespace, ctx: _Context) -> int:
    store = SqlMentionIdentityStore(_require_sessions(ctx))
    if not await store.delete(args.identity_id):
        msg = f"no identity with id {args.identity_id}"
        raise CommandError(msg)
    print(f"removed identity {args.identity_id}")
    return 0


async def _cmd_send_test(args: argparse.Namespace, ctx: _Context) -> int:
    url = validate_notification_url(args.url)
    notification = Notification(
        title=args.title,
        description=args.description or "Test notification from ghrelay",
        color=int(EmbedColour.GREEN),
        footer=EmbedFooter(text="ghrelay"),
        timestamp=utcnow(),
        author=EmbedAuthor(name="ghrelay"),
    )
    dispatcher = NotificationDispatcher(timeout_s=ctx.config.delivery_timeout_s)
    try:
        result = await dispatcher.dispatch(url, notification)
    finally:
        await dispatcher.aclose()
    if not result.ok:
        detail = result.error or f"HTTP {result.status_code}"
        print(f"Failed to send Discord notification: {detail}", file=sys.stderr)
        return 1
    print(f"sent test notification to {redact_notification_url(url)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Return the ``ghrelay-admin`` argument parser."""
    parser = argparse.ArgumentParser(prog="ghrelay-admin", description=__doc__)
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy async URL; defaults to GHRELAY_DATABASE_URL",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    def add(name: str, handler: _Handler, help_text: str) -> argparse.ArgumentParser:
        sub = commands.add_parser(name, help=help_text)
        sub.set_defaults(handler=handler)
        return sub

    add("init-db", _cmd_init_db, "Create missing database tables")

    sub = add("add-account", _cmd_add_account, "Create a destination owner")
    sub.add_argument("username")

    sub = add("remove-account", _cmd_remove_account, "Delete an owner and its data")
    sub.add_argument("username")

    sub = add("add-destination", _cmd_add_destination, "Bind a repository to Discord")
    sub.add_argument("--owner", required=True, help="Owning account username")
    sub.add_argument("--repo", required=True, help="Repository full name, owner/name")
    sub.add_argument("--url", required=True, help="Discord webhook URL")
    sub.add_argument("--secret", required=True, help="GitHub webhook secret")

    sub = add("list-destinations", _cmd_list_destinations, "List destinations")
    sub.add_argument("--owner", required=True)

    sub = add("rotate-secret", _cmd_rotate_secret, "Replace a destination's secret")
    sub.add_argument("--owner", required=True)
    sub.add_argument("--repo", required=True)
    sub.add_argument("--secret", required=True)

    sub = add("remove-destination", _cmd_remove_destination, "Delete a destination")
    sub.add_argument("--owner", required=True)
    sub.add_argument("--repo", required=True)

    sub = add("set-mentions", _cmd_set_mentions, "Set mention preferences")
    sub.add_argument("destination_id")
    sub.add_argument("settings", nargs="+", metavar="KEY=true|false")

    sub = add("add-identity", _cmd_add_identity, "Link a GitHub login to Discord")
    sub.add_argument("destination_id")
    sub.add_argument("github_login")
    sub.add_argument("discord_id")
    sub.add_argument("--linked-owner", default=None, help="Account to associate")

    sub = add("list-identities", _cmd_list_identities, "List linked identities")
    sub.add_argument("destination_id")

    sub = add("remove-identity", _cmd_remove_identity, "Delete an identity link")
    sub.add_argument("identity_id")

    sub = add("send-test", _cmd_send_test, "Send a test notification")
    sub.add_argument("--url", required=True, help="Discord webhook URL")
    sub.add_argument("--title", required=True)
    sub.add_argument("--description", default=None)

    return parser


async def _run(args: argparse.Namespace, config: RelayConfig) -> int:
    database_url = args.database_url or config.database_url
    if database_url is None:
        return await args.handler(args, _Context(config=config))

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    engine = create_async_engine(database_url)
    try:
        session_factory = async_sessionmaker(engine, expire_on_commit=False)
        return await args.handler(
            args,
            _Context(config=config, engine=engine, session_factory=session_factory),
        )
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    """Run one ``ghrelay-admin`` command.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when the command is rejected.

    """
    args = build_parser().parse_args(argv)
    try:
        config = RelayConfig.from_env()
    except ValueError as exc:
        print(f"error: invalid configuration: {exc}", file=sys.stderr)
        return 1
    try:
        return asyncio.run(_run(args, config))
    except (CommandError, DuplicateRecordError, RecordNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
