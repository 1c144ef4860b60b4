"""Client-side session context for wallet login against the auth endpoints."""
from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from http.cookiejar import CookieJar
from typing import Any, Callable, Mapping, Protocol

from theralink.app.services.wallet import WalletAuthInput, build_wallet_auth_input, display_name
from theralink.config import Config

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ApiResult:
    """Outcome of a call to the auth endpoints."""

    status: int | None
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status is not None and 200 <= self.status < 300


class AuthApiClient:
    """Minimal JSON client for the auth endpoints that keeps session cookies."""

    def __init__(self, base_url: str, *, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._opener = urllib.request.build_opener(
            urllib.request.HTTPCookieProcessor(CookieJar())
        )

    def get(self, path: str) -> ApiResult:
        return self._send("GET", path)

    def post(self, path: str, body: Mapping[str, Any] | None = None) -> ApiResult:
        return self._send("POST", path, body)

    def _send(self, method: str, path: str, body: Mapping[str, Any] | None = None) -> ApiResult:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        request = urllib.request.Request(
            self.base_url + path,
            data=data,
            headers={"Content-Type": "application/json"},
            method=method,
        )
        try:
            with self._opener.open(request, timeout=self.timeout) as response:
                return ApiResult(status=response.status, data=_decode(response.read()))
        except urllib.error.HTTPError as exc:
            return ApiResult(status=exc.code, data=_decode(exc.read()), error=exc.reason)
        except urllib.error.URLError as exc:
            return ApiResult(status=None, error=str(exc.reason))
        except TimeoutError as exc:
            return ApiResult(status=None, error=str(exc) or "timed out")


def _decode(body: bytes) -> dict[str, Any]:
    if not body:
        return {}
    try:
        decoded = json.loads(body)
    except json.JSONDecodeError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


class WalletAuthenticator(Protocol):
    """The wallet SDK: signs a challenge and exposes the connected user."""

    def wallet_auth(self, auth_input: WalletAuthInput) -> Mapping[str, Any]: ...

    @property
    def user(self) -> Mapping[str, Any] | None: ...


class SessionState(Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED_UNVERIFIED = "authenticated-unverified"
    AUTHENTICATED_VERIFIED = "authenticated-verified"


@dataclass(slots=True)
class SessionUser:
    wallet_address: str
    username: str | None = None
    profile_picture_url: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SessionUser":
        return cls(
            wallet_address=data.get("walletAddress") or data.get("address") or "",
            username=data.get("username") or None,
            profile_picture_url=data.get("profilePictureUrl") or None,
        )


class SessionContext:
    """Explicit login state shared with whatever needs the current user.

    ``restore`` is the init step and ``logout`` the teardown step.
    """

    def __init__(
        self,
        api: AuthApiClient,
        wallet: WalletAuthenticator,
        *,
        statement: str = Config.WALLET_AUTH_STATEMENT,
        on_login_success: Callable[[], None] | None = None,
    ) -> None:
        self.api = api
        self.wallet = wallet
        self.statement = statement
        self.on_login_success = on_login_success
        self.state = SessionState.ANONYMOUS
        self.user: SessionUser | None = None

    @property
    def is_loading(self) -> bool:
        return self.state is SessionState.AUTHENTICATING

    @property
    def is_verified(self) -> bool:
        return self.state is SessionState.AUTHENTICATED_VERIFIED

    @property
    def display_name(self) -> str | None:
        if self.user is None:
            return None
        return display_name(self.user.username, self.user.wallet_address)

    def restore(self) -> bool:
        """Resume an existing server session, if there is one."""

        try:
            result = self.api.get("/api/auth/me")
        except Exception:
            LOGGER.exception("Error fetching user data")
            return False

        user_data = result.data.get("user") if result.ok else None
        if not user_data:
            return False

        self.user = SessionUser.from_mapping(user_data)
        self.state = SessionState.AUTHENTICATED_VERIFIED
        return True

    def login(self) -> bool:
        """Run the nonce, wallet signature and verification round trip."""

        if self.user is not None:
            return self.is_verified

        self.state = SessionState.AUTHENTICATING
        try:
            nonce_result = self.api.get("/api/nonce")
            nonce = nonce_result.data.get("nonce") if nonce_result.ok else None
            if not nonce:
                LOGGER.warning("Nonce request failed: %s", nonce_result.error or nonce_result.status)
                return self._reset()

            final_payload = self.wallet.wallet_auth(
                build_wallet_auth_input(nonce, self.statement)
            )
            if final_payload.get("status") == "error":
                LOGGER.info("Wallet authentication was declined")
                return self._reset()

            self.user = SessionUser.from_mapping(self.wallet.user or final_payload)
            self.state = SessionState.AUTHENTICATED_UNVERIFIED

            result = self.api.post(
                "/api/auth/login", {"payload": dict(final_payload), "nonce": nonce}
            )
            if result.status != HTTPStatus.OK:
                LOGGER.warning("Wallet verification rejected with status %s", result.status)
                return self._reset()
        except Exception:
            LOGGER.exception("Login error")
            return self._reset()

        self.state = SessionState.AUTHENTICATED_VERIFIED
        return True

    def logout(self) -> None:
        """Clear the session locally even when the server call fails."""

        try:
            result = self.api.post("/api/auth/logout")
            if not result.ok:
                LOGGER.warning("Logout request failed: %s", result.error or result.status)
        except Exception:
            LOGGER.exception("Logout error")
        finally:
            self._reset()

    def enter(self) -> None:
        if self.is_verified and self.on_login_success is not None:
            self.on_login_success()

    def _reset(self) -> bool:
        self.user = None
        self.state = SessionState.ANONYMOUS
        return False
