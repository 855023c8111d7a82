"""
Unit tests for access-token caching.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from voice_relay.errors import SchedulingError
from voice_relay.services.token_cache import AccessToken, AccessTokenCache, msal_token_acquirer


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.mark.asyncio
async def test_token_is_cached(clock):
    acquire = AsyncMock(return_value=AccessToken("first", clock.now + 3600))
    cache = AccessTokenCache(acquire, clock=clock)

    assert await cache.get_token() == "first"
    assert await cache.get_token() == "first"
    acquire.assert_awaited_once()


@pytest.mark.asyncio
async def test_token_refreshed_within_margin(clock):
    acquire = AsyncMock(
        side_effect=[
            AccessToken("first", clock.now + 3600),
            AccessToken("second", clock.now + 7200),
        ]
    )
    cache = AccessTokenCache(acquire, refresh_margin=300, clock=clock)

    assert await cache.get_token() == "first"
    clock.now += 3600 - 299
    assert cache.is_valid() is False
    assert await cache.get_token() == "second"


@pytest.mark.asyncio
async def test_invalidate_forces_refresh(clock):
    acquire = AsyncMock(
        side_effect=[AccessToken("first", clock.now + 3600), AccessToken("second", clock.now + 3600)]
    )
    cache = AccessTokenCache(acquire, clock=clock)

    await cache.get_token()
    cache.invalidate()

    assert await cache.get_token() == "second"


@pytest.mark.asyncio
async def test_acquire_failure_propagates(clock):
    cache = AccessTokenCache(AsyncMock(side_effect=SchedulingError("denied")), clock=clock)
    with pytest.raises(SchedulingError):
        await cache.get_token()
    assert cache.is_valid() is False


@pytest.mark.asyncio
async def test_msal_acquirer_success(clock):
    with patch("voice_relay.services.token_cache.msal.ConfidentialClientApplication") as mock_app_cls:
        mock_app = MagicMock()
        mock_app.acquire_token_for_client.return_value = {"access_token": "abc", "expires_in": 3599}
        mock_app_cls.return_value = mock_app

        acquire = msal_token_acquirer("tenant", "client", "secret", clock=clock)
        mock_app_cls.assert_not_called()

        token = await acquire()
        await acquire()

    assert token == AccessToken("abc", clock.now + 3599)
    mock_app_cls.assert_called_once_with(
        "client",
        authority="https://login.microsoftonline.com/tenant",
        client_credential="secret",
    )
    mock_app.acquire_token_for_client.assert_called_with(
        scopes=["https://graph.microsoft.com/.default"]
    )


@pytest.mark.asyncio
async def test_msal_acquirer_error_response(clock):
    with patch("voice_relay.services.token_cache.msal.ConfidentialClientApplication") as mock_app_cls:
        mock_app_cls.return_value.acquire_token_for_client.return_value = {
            "error": "invalid_client",
            "error_description": "AADSTS7000215: Invalid client secret provided.",
        }
        acquire = msal_token_acquirer("tenant", "client", "wrong", clock=clock)

        with pytest.raises(SchedulingError, match="Invalid client secret"):
            await acquire()


@pytest.mark.asyncio
async def test_msal_acquirer_network_failure(clock):
    with patch(
        "voice_relay.services.token_cache.msal.ConfidentialClientApplication",
        side_effect=ValueError("Unable to get authority configuration"),
    ):
        acquire = msal_token_acquirer("tenant", "client", "secret", clock=clock)
        with pytest.raises(SchedulingError, match="identity service"):
            await acquire()
