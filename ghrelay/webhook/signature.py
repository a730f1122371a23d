"""HMAC-SHA256 authentication of GitHub webhook deliveries.

GitHub signs the exact request body with the destination secret and sends the
result as ``X-Hub-Signature-256: sha256=<hex digest>``. Verification always
looks the destination up first, so unknown destinations are reported before
any signature or body handling takes place.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import hashlib
import hmac
import typing as typ

if typ.TYPE_CHECKING:
    from ghrelay.storage.protocols import DestinationRecord, DestinationStore

SIGNATURE_PREFIX = "sha256="


class VerificationStatus(enum.StrEnum):
    """Outcome of verifying one delivery."""

    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE = "invalid_signature"


@dc.dataclass(frozen=True, slots=True)
class VerificationResult:
    """Verification status plus the destination when one was found."""

    status: VerificationStatus
    destination: DestinationRecord | None = None

    @property
    def verified(self) -> bool:
        """Return whether the delivery was authenticated."""
        return self.status is VerificationStatus.VERIFIED


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Return the ``sha256=`` header value GitHub would send for ``raw_body``."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def constant_time_equals(supplied: str, expected: str) -> bool:
    """Compare two signatures without exiting early on the first mismatch.

    Strings of different lengths are rejected up front. Equal-length strings
    are compared by OR-ing the XOR of every character pair, so the loop always
    visits every position.
    """
    if len(supplied) != len(expected):
        return False
    result = 0
    for left, right in zip(supplied, expected, strict=True):
        result |= ord(left) ^ ord(right)
    return result == 0


class SignatureVerifier:
    """Authenticate raw deliveries against the addressed destination's secret."""

    def __init__(self, destinations: DestinationStore) -> None:
        """Use ``destinations`` to resolve destination secrets."""
        self._destinations = destinations

    async def verify(
        self,
        destination_id: str,
        raw_body: bytes,
        signature: str | None,
    ) -> VerificationResult:
        """Verify ``signature`` for ``raw_body`` sent to ``destination_id``.

        Parameters
        ----------
        destination_id
            Destination identifier taken from the request path.
        raw_body
            Exact request body bytes.
        signature
            Value of the ``X-Hub-Signature-256`` header, if any.

        Returns
        -------
        VerificationResult
            ``NOT_FOUND`` for unknown destinations, ``MISSING_SIGNATURE`` for
            an absent or empty header, ``INVALID_SIGNATURE`` for a mismatch,
            otherwise ``VERIFIED`` with the destination attached.

        """
        destination = await self._destinations.get_by_id(destination_id)
        if destination is None:
            return VerificationResult(VerificationStatus.NOT_FOUND)
        if not signature:
            return VerificationResult(VerificationStatus.MISSING_SIGNATURE, destination)

        expected = compute_signature(destination.secret, raw_body)
        if not constant_time_equals(signature, expected):
            return VerificationResult(VerificationStatus.INVALID_SIGNATURE, destination)
        return VerificationResult(VerificationStatus.VERIFIED, destination)


__all__ = [
    "SIGNATURE_PREFIX",
    "SignatureVerifier",
    "VerificationResult",
    "VerificationStatus",
    "compute_signature",
    "constant_time_equals",
]
