"""Cleanup of GitHub-flavoured markdown before it reaches Discord."""

from __future__ import annotations

import re

PR_PLACEHOLDER = "No description"
REVIEW_PLACEHOLDER = "No comment"

_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_SUP_OPEN = "<sup>"
_SUP_CLOSE = "</sup>"
_NOTE_MARKER = "[!NOTE]"

# Discord embed limits.
TITLE_LIMIT = 256
DESCRIPTION_LIMIT = 4096
FIELD_VALUE_LIMIT = 1024
_ELLIPSIS = "…"


def sanitize_markdown(text: str | None, placeholder: str = PR_PLACEHOLDER) -> str:
    """Return ``text`` with markup Discord cannot render removed.

    HTML comments (including multi-line ones) are stripped, ``<sup>`` becomes
    Discord's ``-# `` subtext prefix, and GitHub's ``[!NOTE]`` alert marker is
    dropped. Blank results collapse to ``placeholder``.

    Examples
    --------
    >>> sanitize_markdown("<!-- template -->Fixes <sup>#12</sup>")
    'Fixes -# #12'
    >>> sanitize_markdown("<!--\\nonly a template\\n-->", "No comment")
    'No comment'

    """
    if not text:
        return placeholder

    cleaned = _HTML_COMMENT.sub("", text)
    cleaned = cleaned.replace(_SUP_OPEN, "-# ").replace(_SUP_CLOSE, "")
    cleaned = cleaned.replace(_NOTE_MARKER, "")
    cleaned = cleaned.strip()
    return cleaned or placeholder


def truncate(text: str, limit: int) -> str:
    """Clip ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - len(_ELLIPSIS)] + _ELLIPSIS


__all__ = [
    "DESCRIPTION_LIMIT",
    "FIELD_VALUE_LIMIT",
    "PR_PLACEHOLDER",
    "REVIEW_PLACEHOLDER",
    "TITLE_LIMIT",
    "sanitize_markdown",
    "truncate",
]
