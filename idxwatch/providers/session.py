"""Yahoo Finance session credential (crumb + cookies) lifecycle."""

import asyncio
import json
import logging
from enum import Enum
from typing import Optional

import httpx

from ..errors import AuthError

logger = logging.getLogger(__name__)

PROVIDER_NAME = "yahoo"
YAHOO_BASE_URL = "https://finance.yahoo.com"
YAHOO_CRUMB_URL = "https://query1.finance.yahoo.com/v1/test/getcrumb"

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

_CRUMB_MARKERS = ('"CrumbStore":{"crumb":"', '"crumb":"')


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


def extract_crumb(html: str) -> Optional[str]:
    """Find the crumb embedded in the landing page's inline JSON."""
    for marker in _CRUMB_MARKERS:
        start = html.find(marker)
        if start < 0:
            continue
        start += len(marker)
        end = html.find('"', start)
        if end <= start:
            continue
        raw = html[start:end]
        try:
            # crumbs are JSON-escaped in the page (e.g. /)
            return json.loads(f'"{raw}"')
        except ValueError:
            return raw
    return None


class SessionAuthenticator:
    """
    Owns the provider credential and its state machine.

    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED -> EXPIRED -> AUTHENTICATING ...

    Session cookies live in the shared httpx client's cookie jar, so the
    authenticator and the quote client must use the same client instance.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client
        self.state = AuthState.UNAUTHENTICATED
        self._crumb: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def crumb(self) -> Optional[str]:
        return self._crumb

    async def ensure_valid(self) -> str:
        """Return the current crumb, running the handshake when there is none."""
        async with self._lock:
            if self.state == AuthState.AUTHENTICATED and self._crumb:
                return self._crumb
            return await self._authenticate()

    def mark_expired(self) -> None:
        """Called by consumers after the quote endpoint answered 401."""
        logger.warning("Yahoo credential expired, will re-authenticate")
        self.state = AuthState.EXPIRED
        self._crumb = None
        self.http_client.cookies.clear()

    async def _authenticate(self) -> str:
        previous = self.state
        self.state = AuthState.AUTHENTICATING
        logger.info("Authenticating with Yahoo Finance (was %s)", previous.value)
        try:
            crumb = await self._handshake()
        except AuthError:
            self.state = previous
            raise
        except httpx.HTTPError as exc:
            self.state = previous
            raise AuthError(PROVIDER_NAME, f"handshake request failed: {exc}") from exc

        self._crumb = crumb
        self.state = AuthState.AUTHENTICATED
        logger.debug("Yahoo crumb acquired")
        return crumb

    async def _handshake(self) -> str:
        # Landing page sets the session cookies and usually embeds the crumb
        response = await self.http_client.get(YAHOO_BASE_URL, headers=BROWSER_HEADERS)
        if not response.is_success:
            raise AuthError(PROVIDER_NAME, "landing page rejected handshake", response.status_code)

        crumb = extract_crumb(response.text)
        if crumb:
            return crumb

        response = await self.http_client.get(YAHOO_CRUMB_URL, headers={"Accept": "text/plain"})
        if not response.is_success:
            raise AuthError(PROVIDER_NAME, "crumb endpoint rejected handshake", response.status_code)
        crumb = response.text.strip()
        if not crumb or "<" in crumb:
            raise AuthError(PROVIDER_NAME, "could not extract crumb")
        return crumb
