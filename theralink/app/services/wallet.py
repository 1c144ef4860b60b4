"""Wallet authentication challenge building and payload verification."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Protocol
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


class WalletVerificationError(ValueError):
    """Raised when a signed wallet payload is rejected."""


@dataclass(slots=True)
class WalletAuthInput:
    """Challenge handed to the wallet for signing."""

    nonce: str
    request_id: str
    expiration_time: datetime
    not_before: datetime
    statement: str

    def to_dict(self) -> dict[str, str]:
        return {
            "nonce": self.nonce,
            "requestId": self.request_id,
            "expirationTime": self.expiration_time.isoformat(),
            "notBefore": self.not_before.isoformat(),
            "statement": self.statement,
        }


def build_wallet_auth_input(
    nonce: str, statement: str, *, now: datetime | None = None
) -> WalletAuthInput:
    """Return a challenge valid from a day ago until a week from now."""

    current = now or datetime.now(timezone.utc)
    return WalletAuthInput(
        nonce=nonce,
        request_id="0",
        expiration_time=current + timedelta(days=7),
        not_before=current - timedelta(days=1),
        statement=statement,
    )


def generate_nonce() -> str:
    return uuid4().hex


@dataclass(slots=True)
class VerifiedWallet:
    """Identity extracted from an accepted wallet payload."""

    address: str
    username: str | None = None
    profile_picture_url: str | None = None


class WalletVerifier(Protocol):
    def verify(self, payload: Mapping[str, Any], nonce: str) -> VerifiedWallet: ...


class NonceBoundVerifier:
    """Accept payloads whose signed message is bound to the issued nonce.

    The cryptographic signature check belongs to the wallet provider's
    verification service; deployments that need it register their own
    verifier through ``app.extensions["wallet_verifier"]``.
    """

    def verify(self, payload: Mapping[str, Any], nonce: str) -> VerifiedWallet:
        if _text(payload, "status") != "success":
            raise WalletVerificationError("Wallet authentication was not successful.")

        address = _text(payload, "address").strip()
        if not _ADDRESS_PATTERN.match(address):
            raise WalletVerificationError("Wallet address is missing or malformed.")

        message = _text(payload, "message")
        if nonce not in message:
            raise WalletVerificationError("Signed message does not contain the issued nonce.")

        if not _text(payload, "signature").strip():
            raise WalletVerificationError("Signature is missing.")

        LOGGER.debug("Accepted wallet payload for %s", address)
        return VerifiedWallet(
            address=address,
            username=_text(payload, "username") or None,
            profile_picture_url=_text(payload, "profilePictureUrl") or None,
        )


def _text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def truncate_address(address: str) -> str:
    """Return ``0x1234...abcd`` style shorthand for a wallet address."""

    return f"{address[:6]}...{address[-4:]}"


def display_name(username: str | None, wallet_address: str) -> str:
    return username or truncate_address(wallet_address)
