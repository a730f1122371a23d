"""Delivery of notifications to Discord webhook endpoints.

Each notification is sent with exactly one POST. Failed deliveries are
reported to the caller, never retried or queued.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import httpx

if typ.TYPE_CHECKING:
    from ghrelay.events.notification import Notification

DEFAULT_TIMEOUT_S = 10.0


@dc.dataclass(frozen=True, slots=True)
class DeliveryResult:
    """Outcome of one delivery attempt.

    Attributes
    ----------
    ok
        ``True`` when the endpoint answered with a 2xx status.
    status_code
        HTTP status from the endpoint, or ``None`` when no response arrived.
    error
        Transport error description when no response arrived.

    """

    ok: bool
    status_code: int | None
    error: str | None = None


def build_message(
    notification: Notification, mention_text: str | None = None
) -> dict[str, object]:
    """Return the Discord execute-webhook body for ``notification``."""
    message: dict[str, object] = {"embeds": [notification.to_embed()]}
    if mention_text:
        message["content"] = mention_text
    return message


class NotificationDispatcher:
    """POST notifications to Discord webhook URLs.

    Parameters
    ----------
    http_client
        Optional ``httpx.AsyncClient``. When omitted the dispatcher creates
        and owns one, closing it in :meth:`aclose`.
    timeout_s
        Request timeout for an owned client.

    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        """Initialise the dispatcher with an optional shared client."""
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_s,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def dispatch(
        self,
        url: str,
        notification: Notification,
        mention_text: str | None = None,
    ) -> DeliveryResult:
        """Send ``notification`` to ``url``, optionally with a mention.

        Parameters
        ----------
        url
            Discord webhook URL of the destination.
        notification
            Embed to deliver.
        mention_text
            Mention token sent as the message ``content`` so Discord pings
            the user; omitted when ``None``.

        Returns
        -------
        DeliveryResult
            ``ok`` mirrors a 2xx response. Timeouts and network errors yield
            ``ok=False`` with no status code.

        """
        try:
            response = await self._client.post(
                url, json=build_message(notification, mention_text)
            )
        except httpx.TimeoutException as exc:
            return DeliveryResult(ok=False, status_code=None, error=f"timeout: {exc}")
        except httpx.RequestError as exc:
            return DeliveryResult(ok=False, status_code=None, error=str(exc))
        return DeliveryResult(
            ok=response.is_success, status_code=response.status_code
        )


__all__ = [
    "DEFAULT_TIMEOUT_S",
    "DeliveryResult",
    "NotificationDispatcher",
    "build_message",
]
