"""
Access-token caching for the scheduling backend.

A single AccessTokenCache is shared by the whole process. It is populated on
first use and refreshed a fixed margin before the token expires. Concurrent
refreshes are tolerated: the last token acquired wins.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, NamedTuple, Optional, Sequence

import msal

from voice_relay.config.constants import (
    GRAPH_AUTHORITY_TEMPLATE,
    GRAPH_SCOPE,
    LOGGER_NAME,
    TOKEN_REFRESH_MARGIN,
)
from voice_relay.errors import SchedulingError

logger = logging.getLogger(LOGGER_NAME)


class AccessToken(NamedTuple):
    token: str
    expires_at: float  # epoch seconds


TokenAcquirer = Callable[[], Awaitable[AccessToken]]


class AccessTokenCache:
    """
    Cache one bearer token and refresh it before it expires.

    Args:
        acquire: Coroutine function that fetches a fresh token
        refresh_margin: Seconds before expiry at which the token is treated as stale
        clock: Time source returning epoch seconds
    """

    def __init__(
        self,
        acquire: TokenAcquirer,
        refresh_margin: float = TOKEN_REFRESH_MARGIN,
        clock: Callable[[], float] = time.time,
    ):
        self._acquire = acquire
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._token: Optional[str] = None
        self._refresh_at = 0.0

    def is_valid(self) -> bool:
        return self._token is not None and self._clock() < self._refresh_at

    async def get_token(self) -> str:
        """Return a usable token, acquiring a new one if the cached one is stale."""
        if self.is_valid():
            return self._token

        logger.info("Acquiring new calendar access token")
        access_token = await self._acquire()
        self._token = access_token.token
        self._refresh_at = access_token.expires_at - self._refresh_margin
        return self._token

    def invalidate(self) -> None:
        """Drop the cached token so the next call acquires a new one."""
        self._token = None
        self._refresh_at = 0.0


def msal_token_acquirer(
    tenant_id: str,
    client_id: str,
    client_secret: str,
    scopes: Sequence[str] = (GRAPH_SCOPE,),
    clock: Callable[[], float] = time.time,
) -> TokenAcquirer:
    """
    Build a client-credentials token acquirer backed by MSAL.

    The MSAL application is created on first use because its construction performs
    authority discovery over the network. MSAL is synchronous, so calls run in a
    worker thread.
    """
    app: Optional[msal.ConfidentialClientApplication] = None

    def _acquire_blocking() -> dict:
        nonlocal app
        if app is None:
            app = msal.ConfidentialClientApplication(
                client_id,
                authority=GRAPH_AUTHORITY_TEMPLATE.format(tenant_id=tenant_id),
                client_credential=client_secret,
            )
        return app.acquire_token_for_client(scopes=list(scopes))

    async def acquire() -> AccessToken:
        try:
            result = await asyncio.to_thread(_acquire_blocking)
        except Exception as e:
            raise SchedulingError(f"Could not reach the calendar identity service: {e}") from e

        if "access_token" not in result:
            reason = result.get("error_description") or result.get("error") or "unknown error"
            raise SchedulingError(f"Could not acquire calendar access token: {reason}")

        expires_in = float(result.get("expires_in", 3600))
        return AccessToken(result["access_token"], clock() + expires_in)

    return acquire
