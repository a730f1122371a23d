"""Environment-driven configuration for the relay service.

Usage
-----
Create a configuration with defaults:

>>> config = RelayConfig()
>>> config.port
8080

Or load from environment variables:

>>> import os
>>> os.environ["GHRELAY_PORT"] = "9000"
>>> RelayConfig.from_env().port
9000

"""

from __future__ import annotations

import dataclasses as dc
import os

_MIN_PORT = 1
_MAX_PORT = 65535


def _read(env_var: str) -> str | None:
    raw = os.environ.get(env_var, "")
    return raw.strip() or None


@dc.dataclass(frozen=True, slots=True)
class RelayConfig:
    """Runtime configuration for the webhook relay.

    Attributes
    ----------
    database_url
        SQLAlchemy async database URL. When ``None`` the service runs in
        health-only mode.
    host
        Bind address for the HTTP server.
    port
        Listen port, 1-65535.
    log_level
        femtologging level name.
    delivery_timeout_s
        Timeout for each notification POST, in seconds.
    public_base_url
        Externally reachable base URL, used to print the GitHub webhook URL
        of a destination.

    """

    database_url: str | None = None
    host: str = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
    port: int = 8080
    log_level: str = "INFO"
    delivery_timeout_s: float = 10.0
    public_base_url: str | None = None

    @staticmethod
    def _parse_port(env_var: str, default: int) -> int:
        raw = _read(env_var)
        if raw is None:
            return default
        try:
            port = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"{env_var} must be in {_MIN_PORT}-{_MAX_PORT}, got: {port}"
            raise ValueError(msg)
        return port

    @staticmethod
    def _parse_positive_float(env_var: str, default: float) -> float:
        raw = _read(env_var)
        if raw is None:
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            msg = f"{env_var} must be a number, got: {raw!r}"
            raise ValueError(msg) from exc
        if value <= 0:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> RelayConfig:
        """Create configuration from environment variables.

        Reads ``GHRELAY_DATABASE_URL``, ``GHRELAY_HOST``, ``GHRELAY_PORT``,
        ``GHRELAY_LOG_LEVEL``, ``GHRELAY_DELIVERY_TIMEOUT_S`` and
        ``GHRELAY_PUBLIC_BASE_URL``. Blank values count as unset.

        Raises
        ------
        ValueError
            If the port or delivery timeout is malformed or out of range.

        """
        defaults = cls()
        public_base_url = _read("GHRELAY_PUBLIC_BASE_URL")
        return cls(
            database_url=_read("GHRELAY_DATABASE_URL"),
            host=_read("GHRELAY_HOST") or defaults.host,
            port=cls._parse_port("GHRELAY_PORT", defaults.port),
            log_level=_read("GHRELAY_LOG_LEVEL") or defaults.log_level,
            delivery_timeout_s=cls._parse_positive_float(
                "GHRELAY_DELIVERY_TIMEOUT_S", defaults.delivery_timeout_s
            ),
            public_base_url=public_base_url.rstrip("/") if public_base_url else None,
        )

    def webhook_url_for(self, destination_id: str) -> str:
        """Return the URL GitHub should deliver to for ``destination_id``.

        Without a public base URL only the path is returned.
        """
        path = f"/webhook/github/{destination_id}"
        return f"{self.public_base_url}{path}" if self.public_base_url else path


__all__ = ["RelayConfig"]
