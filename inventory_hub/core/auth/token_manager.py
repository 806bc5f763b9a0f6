"""Access-token refresh with a process-wide single-flight and cooldown guard."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import httpx

from inventory_hub.core.auth.jwt import get_unverified_expiry
from inventory_hub.core.config_file import get_settings
from inventory_hub.core.logging import log_token_refresh, mask_token

logger = logging.getLogger(__name__)


class TokenRefreshGuard:
    """Collapses concurrent refresh attempts into one and enforces a cooldown.

    One instance is created per process (see ``main.lifespan``) and injected
    into every TokenManager. A call arriving within the cooldown of the last
    attempt is refused without running the refresh; callers that queued on
    the lock while another refresh ran are refused the same way.
    """

    def __init__(
        self,
        cooldown_seconds: float = 5.0,
        lock_timeout_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown_seconds = cooldown_seconds
        self.lock_timeout_seconds = lock_timeout_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_attempt: float | None = None
        self._closed = False

    def _in_cooldown(self) -> bool:
        if self._last_attempt is None:
            return False
        return self._clock() - self._last_attempt < self.cooldown_seconds

    async def run(self, refresh: Callable[[], Awaitable[bool]]) -> bool:
        """Run ``refresh`` unless the guard is cooling down or busy past the lock timeout.

        Returns:
            The refresh result, or False when the attempt was refused.
        """
        if self._closed:
            return False

        if self._in_cooldown():
            logger.debug(f"Refresh attempted too soon, skipping (cooldown: {self.cooldown_seconds}s)")
            return False

        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.lock_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Could not acquire refresh lock within timeout")
            return False

        try:
            if self._in_cooldown():
                logger.debug("Refresh already performed by a concurrent caller, skipping")
                return False
            self._last_attempt = self._clock()
            return await refresh()
        finally:
            self._lock.release()

    def close(self) -> None:
        """Refuse further refreshes; called on process shutdown."""
        self._closed = True


@dataclass
class TokenSession:
    """Tokens held for one signed-in user."""

    session_id: str
    access_token: str | None = None
    refresh_token: str | None = None


class TokenManager:
    """Hands out a valid access token for a session, refreshing it through the identity service."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        guard: TokenRefreshGuard,
        identity_url: str | None = None,
        buffer: timedelta | None = None,
    ):
        settings = get_settings()
        self.http_client = http_client
        self.guard = guard
        self.identity_url = (identity_url or settings.IDENTITY_SERVICE_URL).rstrip("/")
        self.buffer = buffer or timedelta(minutes=settings.TOKEN_REFRESH_BUFFER_MINUTES)

    def is_expiring(self, token: str) -> bool:
        """Tokens that cannot be parsed count as expired."""
        expiry = get_unverified_expiry(token)
        if expiry is None:
            return True
        return expiry - datetime.now(timezone.utc) <= self.buffer

    async def get_valid_token(self, session: TokenSession) -> str | None:
        """Return a usable access token for the session, or None if it cannot be obtained."""
        if not session.access_token:
            logger.info(f"No access token for session {session.session_id}, attempting restore")
            if not await self.refresh(session):
                return None
            return session.access_token

        if self.is_expiring(session.access_token):
            logger.info(f"Access token for session {session.session_id} expiring soon, refreshing")
            if not await self.refresh(session):
                session.access_token = None
                return None

        return session.access_token

    async def refresh(self, session: TokenSession) -> bool:
        """Refresh the session's tokens through the process-wide guard."""
        return await self.guard.run(lambda: self._refresh(session))

    async def _refresh(self, session: TokenSession) -> bool:
        if not session.refresh_token:
            logger.warning(f"No refresh token available for session {session.session_id}")
            return False

        try:
            response = await self.http_client.post(
                f"{self.identity_url}/api/auth/refresh",
                json={
                    "accessToken": session.access_token or "",
                    "refreshToken": session.refresh_token,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Token refresh request failed: {e}")
            return False

        if not response.is_success:
            logger.warning(
                f"Token refresh rejected with status {response.status_code} "
                f"(refresh token {mask_token(session.refresh_token)})"
            )
            log_token_refresh(session.session_id, success=False)
            return False

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Token refresh failed - identity service returned a non-JSON body: {e}")
            log_token_refresh(session.session_id, success=False)
            return False
        if not isinstance(body, dict):
            logger.error("Token refresh failed - identity service returned a non-object body")
            log_token_refresh(session.session_id, success=False)
            return False

        access_token = body.get("accessToken") or body.get("AccessToken")
        if not access_token:
            logger.error("Token refresh failed - received invalid response from identity service")
            return False

        session.access_token = access_token
        session.refresh_token = body.get("refreshToken") or body.get("RefreshToken") or session.refresh_token
        log_token_refresh(session.session_id, success=True)
        return True
