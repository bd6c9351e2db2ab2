"""GitHub App installation token lifecycle.

Installation tokens expire after an hour and can be revoked earlier, so the
manager tracks expiry, regenerates on demand and collapses concurrent refresh
requests into one exchange.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

import httpx
import jwt

from threadbridge.errors import CredentialError, TrackerAPIError, is_auth_failure
from threadbridge.services.github_client import (
    GITHUB_ACCEPT,
    GITHUB_API_VERSION,
    TrackerClients,
    raise_for_github_error,
    response_json,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credential:
    """Installation access token plus its advertised expiry."""

    token: str
    expires_at: Optional[datetime]

    def is_expired(self, now: Optional[datetime] = None, leeway: timedelta = timedelta(0)) -> bool:
        if not self.token or self.expires_at is None:
            return True
        return (now or utcnow()) + leeway >= self.expires_at

    def __repr__(self):
        # Never leak the token into logs.
        return f"<Credential(expires_at={self.expires_at})>"


def _parse_expiry(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class InstallationTokenIssuer:
    """Exchanges the app identity and private key for an installation token."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        app_id: str,
        private_key: str,
        installation_id: str,
    ):
        self.http = http
        self.app_id = str(app_id)
        self.private_key = private_key
        self.installation_id = str(installation_id)

    def app_jwt(self, now: Optional[int] = None) -> str:
        """Short-lived RS256 JWT identifying the GitHub App."""
        issued = int(now if now is not None else time.time())
        payload = {
            # Backdated to tolerate clock drift against GitHub.
            "iat": issued - 60,
            "exp": issued + 540,
            "iss": self.app_id,
        }
        try:
            return jwt.encode(payload, self.private_key, algorithm="RS256")
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise CredentialError(f"Invalid GitHub App private key: {e}") from e

    async def issue(self) -> Credential:
        url = f"/app/installations/{self.installation_id}/access_tokens"
        headers = {
            "Authorization": f"Bearer {self.app_jwt()}",
            "Accept": GITHUB_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        try:
            response = await self.http.post(url, headers=headers)
            raise_for_github_error(response)
            data = response_json(response, "token")
        except (httpx.HTTPError, TrackerAPIError) as e:
            raise CredentialError(f"Installation token exchange failed: {e}") from e

        return Credential(token=data["token"], expires_at=_parse_expiry(data.get("expires_at")))


@dataclass(frozen=True)
class _AuthState:
    credential: Credential
    clients: TrackerClients


class CredentialManager:
    """Owns the cached installation credential and the clients bound to it."""

    def __init__(
        self,
        issue: Callable[[], Awaitable[Credential]],
        client_factory: Callable[[Credential], TrackerClients],
        *,
        leeway: timedelta = timedelta(seconds=60),
    ):
        self._issue = issue
        self._client_factory = client_factory
        self._leeway = leeway
        # Credential and clients are swapped together in one assignment.
        self._state: Optional[_AuthState] = None
        self._inflight: Optional[asyncio.Future] = None
        self.exchanges = 0

    @property
    def credential(self) -> Optional[Credential]:
        return self._state.credential if self._state else None

    @property
    def clients(self) -> Optional[TrackerClients]:
        return self._state.clients if self._state else None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self._state is None:
            return True
        return self._state.credential.is_expired(now, self._leeway)

    async def ensure_valid(self) -> Credential:
        """Return a credential that is not expired at return time."""
        state = self._state
        if state is not None and not state.credential.is_expired(leeway=self._leeway):
            return state.credential
        state = await self._shared_refresh()
        return state.credential

    async def refresh(self) -> Credential:
        """Generate a new credential regardless of the cached expiry."""
        state = await self._shared_refresh()
        return state.credential

    async def is_auth_valid(self) -> bool:
        """Probe GitHub with the current credential."""
        await self.ensure_valid()
        try:
            await self._state.clients.rest.probe()
        except TrackerAPIError as e:
            if is_auth_failure(e):
                return False
            raise
        return True

    async def _shared_refresh(self) -> _AuthState:
        # Late arrivals await the exchange already in flight.
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._exchange())
            self._inflight.add_done_callback(self._clear_inflight)
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, future: asyncio.Future) -> None:
        if self._inflight is future:
            self._inflight = None
        # Keep asyncio quiet when every waiter was cancelled.
        if not future.cancelled():
            future.exception()

    async def _exchange(self) -> _AuthState:
        self.exchanges += 1
        logger.info("Generating GitHub installation token")
        try:
            credential = await self._issue()
            clients = self._client_factory(credential)
        except Exception as e:
            self._state = None
            logger.error(f"Failed to refresh token: {e}")
            if isinstance(e, CredentialError):
                raise
            raise CredentialError(f"Failed to refresh token: {e}") from e

        if credential.is_expired():
            self._state = None
            raise CredentialError("GitHub issued a token that is already expired")

        state = _AuthState(credential=credential, clients=clients)
        self._state = state
        logger.info(f"GitHub installation token valid until {credential.expires_at}")
        return state
