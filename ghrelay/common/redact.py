"""Redaction helpers for values that must never be shown in full.

Destination secrets and Discord webhook URLs both grant write access to a
channel, so operator-facing output and log records only ever carry the
redacted forms produced here.

Examples
--------
>>> redact_secret("s3cr3t-value")
's3cr********'
>>> redact_notification_url("https://discord.com/api/webhooks/123/abc")
'https://discord.com/api/webhooks/***'

"""

from __future__ import annotations

import re

_VISIBLE_SECRET_CHARS = 4
_WEBHOOK_TAIL = re.compile(r"/webhooks/\d+/.*$")


def redact_secret(value: str, visible_chars: int = _VISIBLE_SECRET_CHARS) -> str:
    """Return ``value`` with everything after the first few characters masked.

    Values no longer than ``visible_chars`` are masked entirely so short
    secrets are not revealed.
    """
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def redact_notification_url(url: str) -> str:
    """Hide the id/token tail of a Discord webhook URL."""
    return _WEBHOOK_TAIL.sub("/webhooks/***", url)


__all__ = ["redact_notification_url", "redact_secret"]
